"""Risk classification of genotype cells.

Every non-empty cell is labelled **high-risk** when its in-cell case
probability is strictly greater than the comparison baseline, and
**low-risk** otherwise.  Exact ties go to low-risk, so the labelling is
total and reproducible.  A NaN baseline (the cell contains every
observation, leaving no out-of-cell sample) also yields low-risk: a
cell that *is* the dataset cannot be elevated relative to it.

Two baselines are supported (see :mod:`mbmdr._config`):

* ``"mu"`` — the overall case probability;
* ``"out_of_cell"`` — the case probability outside the cell.

For any cell with a defined out-of-cell probability the two agree::

    p_in > mu  ⇔  p_in > p_out

because ``mu`` is the size-weighted average of ``p_in`` and ``p_out``.

Cells without observations are ``EMPTY``; non-empty cells smaller than
``min_cell_size`` are ``SPARSE``.  Neither enters the test statistic.
"""

from __future__ import annotations

from enum import IntEnum

import numpy as np

from .cells import CellStatistics


class RiskLabel(IntEnum):
    """Label assigned to one genotype cell."""

    LOW = 0
    HIGH = 1
    EMPTY = -1
    SPARSE = -2

    @property
    def code(self) -> str:
        """One-letter code used in tables (``H``, ``L``, ``E``, ``S``)."""
        return {
            RiskLabel.HIGH: "H",
            RiskLabel.LOW: "L",
            RiskLabel.EMPTY: "E",
            RiskLabel.SPARSE: "S",
        }[self]

    @property
    def informative(self) -> bool:
        """Whether the cell contributes to the test statistic."""
        return self in (RiskLabel.HIGH, RiskLabel.LOW)


def baseline_probabilities(stats: CellStatistics, baseline: str) -> np.ndarray:
    """Per-cell comparison reference for the chosen *baseline*.

    Raises:
        ValueError: If *baseline* is not ``"mu"`` or ``"out_of_cell"``.
    """
    if baseline == "mu":
        return np.full(stats.n_cells, stats.mu)
    if baseline == "out_of_cell":
        return stats.case_prob_out_cell
    msg = f"Unknown baseline {baseline!r}. Choose 'mu' or 'out_of_cell'."
    raise ValueError(msg)


def classify_cells(
    stats: CellStatistics,
    baseline: str = "mu",
    min_cell_size: int = 0,
) -> np.ndarray:
    """Label every cell of *stats*.

    Args:
        stats: Counts and probabilities from
            :func:`~mbmdr.cells.count_cells`.
        baseline: ``"mu"`` or ``"out_of_cell"``.
        min_cell_size: Non-empty cells with fewer observations are
            labelled ``SPARSE``.  ``0`` disables the check.

    Returns:
        Read-only int8 array of :class:`RiskLabel` values, one per cell.
    """
    if min_cell_size < 0:
        msg = f"min_cell_size must be non-negative, got {min_cell_size}."
        raise ValueError(msg)

    reference = baseline_probabilities(stats, baseline)

    labels = np.full(stats.n_cells, RiskLabel.LOW, dtype=np.int8)
    with np.errstate(invalid="ignore"):
        high = stats.case_prob_in_cell > reference
    # NaN on either side compares False, i.e. LOW.
    labels[high] = RiskLabel.HIGH
    labels[(stats.sizes < min_cell_size) & ~stats.empty] = RiskLabel.SPARSE
    labels[stats.empty] = RiskLabel.EMPTY

    labels.flags.writeable = False
    return labels


__all__ = ["RiskLabel", "baseline_probabilities", "classify_cells"]
