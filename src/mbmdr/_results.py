"""Typed result object for a fitted cell classification.

A frozen dataclass that provides:

* **Attribute access** — ``result.statistic``, ``result.labels``, etc.
* **Dict-like access** — ``result["statistic"]``, ``result.get("key")``,
  ``"key" in result`` for consumers that prefer bracket syntax.
* **Serialisation** — ``.to_dict()`` returns a plain ``dict[str, Any]``
  with all NumPy types converted to native Python.

The result is frozen: it is a snapshot of one completed fitting run.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any, ClassVar

import numpy as np

from .classification import RiskLabel

if TYPE_CHECKING:
    from ._context import FitContext
    from .statistic import RiskTable

# ------------------------------------------------------------------ #
# Serialisation helper
# ------------------------------------------------------------------ #


def _numpy_to_python(obj: Any) -> Any:
    """Recursively convert NumPy scalars/arrays to Python-native types.

    Handles nested dicts, lists, np.ndarray, np.integer, and
    np.floating so that :meth:`to_dict` returns a fully
    JSON-serialisable structure.
    """
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (np.integer, np.bool_)):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, dict):
        return {k: _numpy_to_python(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        converted = [_numpy_to_python(item) for item in obj]
        return type(obj)(converted)
    return obj


# ------------------------------------------------------------------ #
# Dict-compatibility mixin
# ------------------------------------------------------------------ #


class _DictAccessMixin:
    """Dict-like access convenience for result dataclasses.

    Supports three access patterns:

    1. ``result["key"]``     — raises ``KeyError`` on miss
    2. ``result.get(key, d)`` — returns *d* on miss (default ``None``)
    3. ``"key" in result``   — membership test

    Subclasses may override ``_SERIALIZERS`` to register custom
    conversion functions for non-primitive fields.  Serializers compose
    with :func:`_numpy_to_python`.
    """

    _SERIALIZERS: ClassVar[dict[str, Any]] = {
        "risk_table": lambda t: {
            "high_cases": t.high_cases,
            "high_controls": t.high_controls,
            "low_cases": t.low_cases,
            "low_controls": t.low_controls,
        },
        "labels": lambda labels: [RiskLabel(int(v)).code for v in labels],
    }

    # Fields to exclude from to_dict() serialisation.
    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset({"context"})

    def __getitem__(self, key: str) -> Any:
        """Attribute lookup via bracket syntax."""
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None

    def get(self, key: str, default: Any = None) -> Any:
        """Attribute lookup with a fallback default."""
        return getattr(self, key, default)

    def __contains__(self, key: object) -> bool:
        """Membership test: ``"key" in result``."""
        if not isinstance(key, str):
            return False
        return hasattr(self, key)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary.

        Applies per-field serializers from ``_SERIALIZERS``, then runs
        :func:`_numpy_to_python` on every value so the returned dict
        is fully JSON-serialisable.  NaN floats are kept as ``nan``.
        """
        result: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            if f.name in self._EXCLUDE_FROM_DICT:
                continue
            val = getattr(self, f.name)
            if f.name in self._SERIALIZERS:
                val = self._SERIALIZERS[f.name](val)
            result[f.name] = _numpy_to_python(val)
        return result


# ------------------------------------------------------------------ #
# ClassificationResult
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class ClassificationResult(_DictAccessMixin):
    """Result of fitting a binary-outcome cell classification.

    Per-cell arrays have one entry per cell of the mixed-radix cell
    space, indexed by cell id.
    """

    # ---- Selection -------------------------------------------------
    features: tuple[int, ...]
    """Selected feature indices, in selection order."""

    feature_names: tuple[str, ...]
    """Names of the selected features."""

    cardinalities: tuple[int, ...]
    """Cardinality of each selected feature."""

    # ---- Counts ----------------------------------------------------
    cases: np.ndarray
    """Case count per cell."""

    controls: np.ndarray
    """Control count per cell."""

    case_prob_in_cell: np.ndarray
    """In-cell case probability; NaN for empty cells."""

    case_prob_out_cell: np.ndarray
    """Out-of-cell case probability; NaN when undefined."""

    mu: float
    """Overall case probability."""

    n_observations: int
    """Number of observations fitted."""

    # ---- Classification --------------------------------------------
    labels: np.ndarray
    """Per-cell :class:`~mbmdr.classification.RiskLabel` codes."""

    baseline: str
    """Comparison baseline used for labelling."""

    min_cell_size: int
    """Cells smaller than this were labelled ``SPARSE``."""

    # ---- Statistic -------------------------------------------------
    risk_table: RiskTable
    """Cases and controls aggregated by risk group."""

    statistic: float
    """Model test statistic (Pearson χ² against ``mu``)."""

    p_value: float
    """Asymptotic χ²(1) p-value of :attr:`statistic`."""

    alpha: float
    """Significance level carried for the caller."""

    cell_statistics: np.ndarray
    """Per-cell χ² of the cell against all other cells."""

    cell_p_values: np.ndarray
    """Asymptotic p-values of :attr:`cell_statistics`."""

    diagnostics: dict[str, Any] = field(default_factory=dict)
    """Effect sizes of the risk table (odds ratio, CI, risk ratio)."""

    # ---- Computation context (not serialised) ----------------------
    context: FitContext | None = field(default=None, repr=False, compare=False)
    """Pipeline context of the run.  Excluded from ``to_dict()``."""

    @property
    def n_cells(self) -> int:
        return int(self.cases.shape[0])

    @property
    def high_risk_cells(self) -> np.ndarray:
        """Ids of the cells labelled ``HIGH``."""
        return np.flatnonzero(self.labels == RiskLabel.HIGH)

    @property
    def low_risk_cells(self) -> np.ndarray:
        """Ids of the cells labelled ``LOW``."""
        return np.flatnonzero(self.labels == RiskLabel.LOW)

    def label_of(self, cell: int) -> RiskLabel:
        """Label of one cell as a :class:`RiskLabel`."""
        return RiskLabel(int(self.labels[cell]))


__all__ = ["ClassificationResult"]
