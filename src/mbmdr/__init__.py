"""mbmdr: risk-cell classification statistics for genotype interactions.

Implements the statistical core of model-based multifactor
dimensionality reduction (MB-MDR) for binary outcomes: observations are
partitioned into cells by the joint values of a fixed combination of
genotype features, each cell is labelled high- or low-risk against the
overall case rate, and a single Pearson χ² statistic summarises how well
the induced high/low grouping separates cases from controls.

Public API:
    .. autosummary::
        GenotypeData
        CellIndexer
        CellStatistics
        count_cells
        RiskLabel
        classify_cells
        RiskTable
        compute_test_statistic
        CellModel
        ClassificationModel
        register_model
        resolve_model
        ClassificationResult
        FitContext
        FitStage
        MBMDRError
        InputShapeError
        DataDomainError
        get_baseline
        set_baseline
        print_results_table
        print_cell_table
"""

from ._config import get_baseline, set_baseline
from ._context import FitContext, FitStage
from ._errors import DataDomainError, InputShapeError, MBMDRError
from ._results import ClassificationResult
from .cells import CellIndexer, CellStatistics, count_cells
from .classification import RiskLabel, classify_cells
from .data import GenotypeData
from .display import print_cell_table, print_results_table
from .models import CellModel, ClassificationModel, register_model, resolve_model
from .statistic import RiskTable, compute_test_statistic

__all__ = [
    "GenotypeData",
    "CellIndexer",
    "CellStatistics",
    "count_cells",
    "RiskLabel",
    "classify_cells",
    "RiskTable",
    "compute_test_statistic",
    "CellModel",
    "ClassificationModel",
    "register_model",
    "resolve_model",
    "ClassificationResult",
    "FitContext",
    "FitStage",
    "MBMDRError",
    "InputShapeError",
    "DataDomainError",
    "get_baseline",
    "set_baseline",
    "print_results_table",
    "print_cell_table",
]

__version__ = "0.1.0"
