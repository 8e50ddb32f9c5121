"""Fit context: the state carried through one fitting run.

A :class:`FitContext` is created fresh at the start of every
:meth:`~mbmdr.models.ClassificationModel.fit` call and filled in stage
by stage.  Its :attr:`~FitContext.stage` records how far the pipeline
has progressed::

    UNINITIALIZED ─► COUNTED ─► CLASSIFIED ─► STATISTIC_COMPUTED ─► DONE

The pipeline only moves forward.  If a stage raises, the context is
abandoned together with its partial artifacts and the model keeps no
result from that run.

Lifecycle::

    ┌──────────────────────────────────────────────┐
    │  ClassificationModel.fit()                   │
    │  ├─ ctx = FitContext(features=…)             │
    │  ├─ ctx.cell_ids = indexer.encode(…)         │
    │  ├─ ctx.cell_stats = count_cells(…)          │
    │  │   └─ ctx.advance(COUNTED)                 │
    │  ├─ ctx.labels = classify_cells(…)           │
    │  │   └─ ctx.advance(CLASSIFIED)              │
    │  ├─ ctx.risk_table / ctx.statistic = …       │
    │  │   └─ ctx.advance(STATISTIC_COMPUTED)      │
    │  ├─ result = ClassificationResult(…, ctx)    │
    │  │   └─ ctx.advance(DONE)                    │
    │  └─ return result                            │
    └──────────────────────────────────────────────┘

The context is not part of the serialisation API;
:meth:`~mbmdr._results.ClassificationResult.to_dict` skips it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import numpy as np


class FitStage(IntEnum):
    """Pipeline stages, in execution order."""

    UNINITIALIZED = 0
    COUNTED = 1
    CLASSIFIED = 2
    STATISTIC_COMPUTED = 3
    DONE = 4


@dataclass
class FitContext:
    """Mutable accumulator for one fitting run.

    Every artifact defaults to ``None`` until the stage that produces
    it has run.
    """

    # ---- Inputs --------------------------------------------------
    features: tuple[int, ...] = ()
    """Selected feature indices, in selection order."""

    feature_names: tuple[str, ...] = ()
    """Names of the selected features."""

    baseline: str | None = None
    """Resolved risk baseline (``"mu"`` or ``"out_of_cell"``)."""

    # ---- Stage -----------------------------------------------------
    stage: FitStage = FitStage.UNINITIALIZED
    """Last completed stage."""

    # ---- Counting --------------------------------------------------
    indexer: Any = None
    """The :class:`~mbmdr.cells.CellIndexer` used for this run."""

    cell_ids: np.ndarray | None = None
    """Cell id of each observation ``(N,)``."""

    cell_stats: Any = None
    """:class:`~mbmdr.cells.CellStatistics` snapshot."""

    # ---- Classification --------------------------------------------
    labels: np.ndarray | None = None
    """Per-cell :class:`~mbmdr.classification.RiskLabel` codes."""

    # ---- Statistic -------------------------------------------------
    risk_table: Any = None
    """:class:`~mbmdr.statistic.RiskTable` of the classification."""

    statistic: float | None = None
    """Model test statistic."""

    # ---- Warnings --------------------------------------------------
    warnings_captured: list[str] = field(default_factory=list)
    """Degenerate-input warnings raised during the run."""

    def advance(self, stage: FitStage) -> None:
        """Move to *stage*, which must be the next one.

        Raises:
            RuntimeError: On any skipped or backward transition.
        """
        if stage != self.stage + 1:
            msg = (
                f"Illegal fit-stage transition {self.stage.name} -> "
                f"{FitStage(stage).name}."
            )
            raise RuntimeError(msg)
        self.stage = FitStage(stage)


__all__ = ["FitContext", "FitStage"]
