"""Formatted ASCII table display utilities for fitted cell models.

Two tables are provided:

* :func:`print_results_table` — model summary: selected features,
  overall case rate, the aggregated high/low-risk table, the test
  statistic with its asymptotic p-value, and the risk-table effect
  sizes.
* :func:`print_cell_table` — one row per genotype cell with its code
  tuple, counts, in- and out-of-cell case probabilities, per-cell
  association p-value, and risk label.

Significance markers compare p-values against the model's ``alpha``;
they are a reading aid only and never feed back into the fit.
"""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING

import numpy as np

from .cells import CellIndexer
from .classification import RiskLabel

if TYPE_CHECKING:
    from ._results import ClassificationResult


def _truncate(name: str, max_len: int) -> str:
    """Truncate *name* to *max_len*, appending ``'...'`` if needed."""
    if len(name) <= max_len:
        return name
    return name[: max_len - 3] + "..."


def _fmt_num(val: object, digits: int = 4) -> str:
    """Format a number for display; ``nan`` and ``None`` become ``'N/A'``."""
    if val is None:
        return "N/A"
    if isinstance(val, (float, np.floating)):
        if val != val:  # nan check
            return "N/A"
        return f"{val:.{digits}f}"
    return str(val)


def _fmt_p(p: float) -> str:
    """Format a p-value: scientific notation if tiny, 4 dp otherwise."""
    if p != p:
        return "N/A"
    if p < 0.0001:
        return f"{p:.2e}"
    return f"{p:.4f}"


def _marker(p: float, alpha: float) -> str:
    if p != p:
        return ""
    return "(*)" if p < alpha else "(ns)"


def _wrap(text: str, width: int = 80, indent: int = 2) -> str:
    """Word-wrap *text* to *width*, indenting continuation lines."""
    return textwrap.fill(
        text,
        width=width,
        initial_indent="",
        subsequent_indent=" " * indent,
    )


def print_results_table(
    results: ClassificationResult,
    *,
    title: str = "MB-MDR Cell Classification Results",
) -> None:
    """Print the model summary in a formatted ASCII table.

    Args:
        results: Result returned by
            :meth:`~mbmdr.models.ClassificationModel.fit`.
        title: Title for the output table.
    """
    print("=" * 80)
    for line in textwrap.wrap(title, width=78):
        print(f"{line:^80}")
    print("=" * 80)

    col1 = 40
    col2 = 38
    table = results.risk_table
    n_high = int(results.high_risk_cells.size)
    n_low = int(results.low_risk_cells.size)

    print(
        f"{'Order:':<16}{len(results.features):<{col1 - 16}}"
        f"{'No. Observations:':>{col2 - 11}} {results.n_observations:>10}"
    )
    print(
        f"{'Baseline:':<16}{results.baseline:<{col1 - 16}}"
        f"{'No. Cells:':>{col2 - 11}} {results.n_cells:>10}"
    )
    print(
        f"{'Overall mu:':<16}{results.mu:<{col1 - 16}.4f}"
        f"{'High / Low:':>{col2 - 11}} {f'{n_high} / {n_low}':>10}"
    )
    feat_list = ", ".join(_truncate(f, 25) for f in results.feature_names)
    print(_wrap(f"Features: {feat_list}", width=80, indent=10))
    print("-" * 80)

    print(f"{'':<16}{'Cases':>12}{'Controls':>12}{'Total':>12}{'Case Rate':>12}")
    diag = results.diagnostics
    for label, cases, controls, total, rate in (
        ("High-risk", table.high_cases, table.high_controls, table.n_high, diag.get("high_case_rate")),
        ("Low-risk", table.low_cases, table.low_controls, table.n_low, diag.get("low_case_rate")),
    ):
        print(f"{label:<16}{cases:>12}{controls:>12}{total:>12}{_fmt_num(rate):>12}")
    print("-" * 80)

    print(f"{'Test Statistic:':<30} {results.statistic:>12.4f}")
    print(
        f"{'Asymptotic p-Value:':<30} {_fmt_p(results.p_value):>12} "
        f"{_marker(results.p_value, results.alpha)}"
    )
    lo, hi = diag.get("odds_ratio_ci", (np.nan, np.nan))
    print(f"{'Odds Ratio (H vs L):':<30} {_fmt_num(diag.get('odds_ratio')):>12}")
    print(
        f"{f'{1 - results.alpha:.0%} CI:':<30} "
        f"{f'[{_fmt_num(lo)}, {_fmt_num(hi)}]':>12}"
    )
    print(f"{'Risk Ratio (H vs L):':<30} {_fmt_num(diag.get('risk_ratio')):>12}")

    notes = []
    if results.context is not None:
        notes.extend(results.context.warnings_captured)
    if table.n_high == 0 or table.n_low == 0:
        empty = "high" if table.n_high == 0 else "low"
        notes.append(f"The {empty}-risk group is empty; it contributes nothing to the statistic.")
    if notes:
        print("-" * 80)
        print("Notes")
        print("-" * 80)
        for note in notes:
            print(_wrap(f"  [!] {note}", width=80, indent=6))

    print("=" * 80)
    print(f"(*) p < {results.alpha}   (ns) p >= {results.alpha}")
    print()


def print_cell_table(
    results: ClassificationResult,
    *,
    title: str = "Genotype Cell Table",
    show_empty: bool = False,
) -> None:
    """Print one row per genotype cell.

    Args:
        results: Result returned by
            :meth:`~mbmdr.models.ClassificationModel.fit`.
        title: Title for the output table.
        show_empty: Include cells without observations.
    """
    names = [_truncate(n, 8) for n in results.feature_names]
    genotype_header = "/".join(names)
    gcol = max(14, min(len(genotype_header) + 2, 24))

    print("=" * 80)
    for line in textwrap.wrap(title, width=78):
        print(f"{line:^80}")
    print("=" * 80)
    print(
        f"{'Cell':>5} {_truncate(genotype_header, gcol - 1):<{gcol}}"
        f"{'Cases':>8}{'Ctrls':>8}{'P(in)':>9}{'P(out)':>9}{'p-Value':>11}{'Label':>7}"
    )
    print("-" * 80)

    indexer = CellIndexer(results.cardinalities)
    for cell in range(results.n_cells):
        label = results.label_of(cell)
        if label is RiskLabel.EMPTY and not show_empty:
            continue
        genotype = "/".join(str(v) for v in indexer.decode(cell))
        print(
            f"{cell:>5} {genotype:<{gcol}}"
            f"{int(results.cases[cell]):>8}{int(results.controls[cell]):>8}"
            f"{_fmt_num(results.case_prob_in_cell[cell]):>9}"
            f"{_fmt_num(results.case_prob_out_cell[cell]):>9}"
            f"{_fmt_p(float(results.cell_p_values[cell])):>11}"
            f"{label.code:>7}"
        )

    print("=" * 80)
    print("H high-risk   L low-risk   S sparse   E empty")
    print()


__all__ = ["print_cell_table", "print_results_table"]
