"""Model test statistic for a high/low-risk cell classification.

Collapsing the labelled cells into two risk groups gives a 2 × 2
contingency table::

                 cases      controls
    high-risk    O_hc       O_hn
    low-risk     O_lc       O_ln

Under the null hypothesis the risk grouping carries no information
about the outcome, so every group should show the overall case rate
``mu``.  The expected counts for group ``g`` with ``n_g`` observations
are

    E_gc = n_g · mu        E_gn = n_g · (1 − mu)

and the test statistic is the Pearson chi-squared

    χ² = Σ_g [ (O_gc − E_gc)² / E_gc + (O_gn − E_gn)² / E_gn ]
       = Σ_g n_g (p_g − mu)² / (mu (1 − mu)),

where ``p_g`` is the case rate of group ``g``.  The second form shows
the two properties the statistic must have: it grows with the gap
between a group's case rate and ``mu``, and it grows linearly with the
number of observations supporting that gap.

Degenerate inputs never raise.  A term whose expected count is zero
contributes zero (its observed count is then zero as well), so an empty
risk group, or a dataset with no cases or no controls, simply yields a
smaller statistic.

The asymptotic reference distribution is χ² with one degree of
freedom.  The p-value is reported for convenience; significance
decisions against ``alpha`` are left to the caller.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any

import numpy as np
from scipy import stats as _sp_stats
from statsmodels.stats.contingency_tables import Table2x2

from .cells import CellStatistics
from .classification import RiskLabel

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------ #
# Risk table
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class RiskTable:
    """Cases and controls aggregated by risk group."""

    high_cases: int
    high_controls: int
    low_cases: int
    low_controls: int

    @classmethod
    def from_cells(cls, stats: CellStatistics, labels: np.ndarray) -> RiskTable:
        """Sum the counts of all HIGH and all LOW cells."""
        labels = np.asarray(labels)
        high = labels == RiskLabel.HIGH
        low = labels == RiskLabel.LOW
        return cls(
            high_cases=int(stats.cases[high].sum()),
            high_controls=int(stats.controls[high].sum()),
            low_cases=int(stats.cases[low].sum()),
            low_controls=int(stats.controls[low].sum()),
        )

    @property
    def n_high(self) -> int:
        return self.high_cases + self.high_controls

    @property
    def n_low(self) -> int:
        return self.low_cases + self.low_controls

    @property
    def total(self) -> int:
        return self.n_high + self.n_low

    def as_array(self) -> np.ndarray:
        """``[[high_cases, high_controls], [low_cases, low_controls]]``."""
        return np.array(
            [
                [self.high_cases, self.high_controls],
                [self.low_cases, self.low_controls],
            ],
            dtype=np.float64,
        )


# ------------------------------------------------------------------ #
# Test statistic
# ------------------------------------------------------------------ #


def _pearson_terms(observed: np.ndarray, expected: np.ndarray) -> np.ndarray:
    """``(O − E)² / E`` with zero wherever ``E == 0``."""
    terms = np.zeros_like(expected, dtype=np.float64)
    np.divide((observed - expected) ** 2, expected, out=terms, where=expected > 0)
    return terms


def compute_test_statistic(table: RiskTable, mu: float) -> float:
    """Pearson χ² of the risk table against the overall case rate *mu*.

    Args:
        table: Aggregated high/low-risk counts.
        mu: Overall case probability of the dataset.

    Returns:
        The non-negative test statistic.
    """
    observed = table.as_array()
    sizes = observed.sum(axis=1, keepdims=True)
    expected = sizes * np.array([[mu, 1.0 - mu]])
    statistic = float(_pearson_terms(observed, expected).sum())
    logger.debug(
        "Risk table H=%d/%d L=%d/%d -> statistic %.6g",
        table.high_cases,
        table.high_controls,
        table.low_cases,
        table.low_controls,
        statistic,
    )
    return statistic


def statistic_p_value(statistic: float, df: int = 1) -> float:
    """Upper-tail χ² probability of *statistic*."""
    return float(_sp_stats.chi2.sf(statistic, df))


# ------------------------------------------------------------------ #
# Per-cell association
# ------------------------------------------------------------------ #


def cell_association(stats: CellStatistics) -> tuple[np.ndarray, np.ndarray]:
    """Pearson χ² of each cell against all other cells.

    For cell ``c`` the 2 × 2 table is (in-cell, out-of-cell) ×
    (cases, controls).  The closed form

        χ² = N (a d − b c)² / ((a + b)(c + d)(a + c)(b + d))

    is used, with zero whenever a margin is zero.  Empty cells get NaN.

    Returns:
        ``(statistics, p_values)``, each of shape ``(n_cells,)``.
    """
    a = stats.cases.astype(np.float64)
    b = stats.controls.astype(np.float64)
    c = stats.total_cases - a
    d = stats.total_controls - b
    n = float(stats.n_observations)

    numerator = n * (a * d - b * c) ** 2
    denominator = (a + b) * (c + d) * (a + c) * (b + d)
    chi2 = np.zeros(stats.n_cells)
    np.divide(numerator, denominator, out=chi2, where=denominator > 0)
    chi2[stats.empty] = np.nan

    p_values = _sp_stats.chi2.sf(chi2, 1)
    return chi2, p_values


# ------------------------------------------------------------------ #
# Extended diagnostics
# ------------------------------------------------------------------ #


def _nan_diagnostics() -> dict[str, Any]:
    return {
        "odds_ratio": np.nan,
        "odds_ratio_ci": (np.nan, np.nan),
        "risk_ratio": np.nan,
        "high_case_rate": np.nan,
        "low_case_rate": np.nan,
    }


def risk_table_diagnostics(table: RiskTable, alpha: float) -> dict[str, Any]:
    """Effect-size summaries of the risk table via statsmodels.

    Zero cells are handled by the 0.5 continuity shift of
    :class:`~statsmodels.stats.contingency_tables.Table2x2`.  When
    either risk group or either outcome class is empty the effect sizes
    are undefined and NaN sentinels are returned.

    Args:
        table: Aggregated high/low-risk counts.
        alpha: Significance level; the odds-ratio interval has
            coverage ``1 − alpha``.

    Returns:
        Dict with ``odds_ratio``, ``odds_ratio_ci``, ``risk_ratio``,
        ``high_case_rate``, and ``low_case_rate``.
    """
    result = _nan_diagnostics()
    if table.n_high > 0:
        result["high_case_rate"] = table.high_cases / table.n_high
    if table.n_low > 0:
        result["low_case_rate"] = table.low_cases / table.n_low

    cases = table.high_cases + table.low_cases
    controls = table.high_controls + table.low_controls
    if table.n_high == 0 or table.n_low == 0 or cases == 0 or controls == 0:
        return result

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", RuntimeWarning)
            t22 = Table2x2(table.as_array(), shift_zeros=True)
            lo, hi = t22.oddsratio_confint(alpha=alpha)
            result["odds_ratio"] = float(t22.oddsratio)
            result["odds_ratio_ci"] = (float(lo), float(hi))
            result["risk_ratio"] = float(t22.riskratio)
    except (ValueError, ZeroDivisionError, FloatingPointError) as exc:
        logger.debug("Risk-table diagnostics failed: %s", exc)
    return result


__all__ = [
    "RiskTable",
    "cell_association",
    "compute_test_statistic",
    "risk_table_diagnostics",
    "statistic_p_value",
]
