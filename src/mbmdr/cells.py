"""Genotype cell indexing and per-cell case/control statistics.

Cell encoding
~~~~~~~~~~~~~
A selection of ``order`` features partitions the observations into
*cells*: all observations sharing the same tuple of feature codes fall
into the same cell.  The tuple ``(v_0, …, v_{k-1})`` is mapped to a
single integer with a mixed-radix positional code, the first selected
feature being the least significant digit::

    cell = v_0 + v_1 · c_0 + v_2 · c_0 · c_1 + …

where ``c_j`` is the cardinality of the j-th selected feature.  With
three-level genotypes and ``order = 2`` this gives the familiar 3 × 3
table laid out column by column: cell ids ``0..8``, dense and
collision-free.  The encoding depends on selection order; the same
selection on the same data is always encoded identically.

Counting
~~~~~~~~
A single ``np.bincount`` pass over the cell ids, split by outcome,
yields the case and control count per cell.  From these,
:class:`CellStatistics` derives

* ``mu``                 — overall case probability, ``cases / N``;
* ``case_prob_in_cell``  — ``cases[c] / n[c]``, NaN for empty cells;
* ``case_prob_out_cell`` — case probability among the observations
  *outside* cell ``c``, NaN when the cell holds the whole dataset.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from ._errors import DataDomainError, InputShapeError
from .data import GenotypeData

logger = logging.getLogger(__name__)

MAX_CELLS = 2**24
"""Largest cell space an indexer accepts (per-cell arrays are dense)."""


# ------------------------------------------------------------------ #
# Cell indexer
# ------------------------------------------------------------------ #


class CellIndexer:
    """Mixed-radix encoder from a feature-code tuple to a cell id.

    Args:
        cardinalities: Cardinality of each selected feature, in
            selection order.

    Attributes:
        cardinalities: Tuple of per-feature cardinalities.
        bases: Positional weight of each feature,
            ``bases[k] = Π_{j<k} cardinalities[j]``.
        n_cells: Size of the cell space, ``Π cardinalities``.
    """

    def __init__(self, cardinalities: Sequence[int]) -> None:
        cards = tuple(int(c) for c in cardinalities)
        if not cards:
            msg = "A cell indexer needs at least one feature."
            raise InputShapeError(msg)
        if any(c < 1 for c in cards):
            msg = f"Cardinalities must be positive, got {cards}."
            raise ValueError(msg)
        n_cells = math.prod(cards)
        if n_cells > MAX_CELLS:
            msg = (
                f"Cell space of {n_cells} cells for cardinalities {cards} "
                f"exceeds the limit of {MAX_CELLS}; lower the order."
            )
            raise InputShapeError(msg)
        self.cardinalities = cards
        bases = np.ones(len(cards), dtype=np.int64)
        bases[1:] = np.cumprod(cards[:-1])
        self.bases = bases
        self.n_cells = n_cells

    @classmethod
    def for_selection(cls, data: GenotypeData, features: Sequence[int]) -> CellIndexer:
        """Build the indexer for *features* using the view's cardinalities."""
        return cls([data.cardinality(j) for j in features])

    @property
    def order(self) -> int:
        return len(self.cardinalities)

    def encode(self, codes: np.ndarray, feature_names: Sequence[str] | None = None) -> np.ndarray:
        """Encode a ``(N, order)`` code matrix into ``(N,)`` cell ids.

        Args:
            codes: Integer matrix, one column per selected feature.
            feature_names: Optional labels used in error messages.

        Raises:
            InputShapeError: If *codes* does not have ``order`` columns.
            DataDomainError: If any code lies outside ``[0, c_j)``.
        """
        codes = np.asarray(codes)
        if codes.ndim != 2 or codes.shape[1] != self.order:
            msg = (
                f"Expected a code matrix with {self.order} column(s), got "
                f"shape {codes.shape}."
            )
            raise InputShapeError(msg)

        for k, card in enumerate(self.cardinalities):
            column = codes[:, k]
            bad = (column < 0) | (column >= card)
            if np.any(bad):
                first = int(np.flatnonzero(bad)[0])
                label = feature_names[k] if feature_names is not None else f"#{k}"
                msg = (
                    f"Feature {label} has value {int(column[first])} at "
                    f"observation {first}, outside its cardinality range "
                    f"[0, {card})."
                )
                raise DataDomainError(msg)

        return codes.astype(np.int64, copy=False) @ self.bases

    def encode_selection(self, data: GenotypeData, features: Sequence[int]) -> np.ndarray:
        """Cell id of every observation in *data* for *features*."""
        names = [data.feature_names[j] for j in features]
        return self.encode(data.columns(features), feature_names=names)

    def decode(self, cell: int) -> tuple[int, ...]:
        """Inverse of :meth:`encode` for a single cell id."""
        if not 0 <= cell < self.n_cells:
            msg = f"Cell id {cell} out of range [0, {self.n_cells})."
            raise IndexError(msg)
        values = []
        for card in self.cardinalities:
            cell, digit = divmod(cell, card)
            values.append(digit)
        return tuple(values)

    def __repr__(self) -> str:
        return f"CellIndexer(cardinalities={self.cardinalities})"


# ------------------------------------------------------------------ #
# Outcome coding
# ------------------------------------------------------------------ #


def case_mask(outcome: np.ndarray) -> np.ndarray:
    """Return a boolean mask of case observations.

    Outcomes must be coded ``1`` (case) or ``0`` (control).

    Raises:
        DataDomainError: If any outcome is neither 0 nor 1 (NaN
            included).
    """
    outcome = np.asarray(outcome, dtype=np.float64)
    is_case = outcome == 1.0
    is_control = outcome == 0.0
    invalid = ~(is_case | is_control)
    if np.any(invalid):
        bad = outcome[invalid]
        msg = (
            f"Binary outcome must be coded 0 (control) or 1 (case); found "
            f"{int(invalid.sum())} other value(s), e.g. {bad[0]!r}."
        )
        raise DataDomainError(msg)
    return is_case


# ------------------------------------------------------------------ #
# Cell statistics
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class CellStatistics:
    """Per-cell counts and the probabilities derived from them.

    All arrays have length ``n_cells`` and are read-only.
    """

    cases: np.ndarray
    """Case count per cell (int64)."""

    controls: np.ndarray
    """Control count per cell (int64)."""

    case_prob_in_cell: np.ndarray
    """``cases / (cases + controls)``; NaN for empty cells."""

    case_prob_out_cell: np.ndarray
    """Case probability outside the cell; NaN when nothing lies outside."""

    mu: float
    """Overall case probability."""

    n_observations: int
    """Number of observations counted."""

    empty: np.ndarray = field(repr=False)
    """Boolean mask of cells without observations."""

    @property
    def n_cells(self) -> int:
        return int(self.cases.shape[0])

    @property
    def sizes(self) -> np.ndarray:
        """Number of observations per cell."""
        return self.cases + self.controls

    @property
    def total_cases(self) -> int:
        return int(self.cases.sum())

    @property
    def total_controls(self) -> int:
        return int(self.controls.sum())


def count_cells(cell_ids: np.ndarray, is_case: np.ndarray, n_cells: int) -> CellStatistics:
    """Count cases and controls per cell and derive the probabilities.

    Args:
        cell_ids: Cell id of each observation, shape ``(N,)``.
        is_case: Boolean case mask, shape ``(N,)``.
        n_cells: Size of the cell space.

    Returns:
        A :class:`CellStatistics` snapshot.

    Raises:
        InputShapeError: If there are no observations or the two input
            vectors differ in length.
    """
    cell_ids = np.asarray(cell_ids, dtype=np.int64)
    is_case = np.asarray(is_case, dtype=bool)
    n_obs = int(cell_ids.shape[0])
    if n_obs == 0:
        msg = "Cannot count cells: the dataset has no observations."
        raise InputShapeError(msg)
    if is_case.shape[0] != n_obs:
        msg = f"{n_obs} cell ids but {is_case.shape[0]} outcome flags."
        raise InputShapeError(msg)

    cases = np.bincount(cell_ids[is_case], minlength=n_cells).astype(np.int64)
    controls = np.bincount(cell_ids[~is_case], minlength=n_cells).astype(np.int64)
    sizes = cases + controls
    total_cases = int(cases.sum())

    empty = sizes == 0
    outside = n_obs - sizes

    # Guarded divisions: np.divide only writes where the mask is True,
    # the remaining slots keep their NaN fill.
    in_cell = np.full(n_cells, np.nan)
    np.divide(cases, sizes, out=in_cell, where=~empty)
    out_cell = np.full(n_cells, np.nan)
    np.divide(total_cases - cases, outside, out=out_cell, where=outside > 0)

    mu = total_cases / n_obs

    logger.debug(
        "Counted %d observations into %d cells (%d empty), mu=%.4f",
        n_obs,
        n_cells,
        int(empty.sum()),
        mu,
    )

    for arr in (cases, controls, in_cell, out_cell, empty):
        arr.flags.writeable = False

    return CellStatistics(
        cases=cases,
        controls=controls,
        case_prob_in_cell=in_cell,
        case_prob_out_cell=out_cell,
        mu=float(mu),
        n_observations=n_obs,
        empty=empty,
    )


__all__ = ["CellIndexer", "CellStatistics", "case_mask", "count_cells"]
