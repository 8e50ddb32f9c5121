"""Cell model protocol, the binary classification model, and resolution logic.

The ``CellModel`` protocol defines the interface every outcome-specific
model variant implements: construction from a dataset view and a
feature selection, a one-shot :meth:`~CellModel.fit`, and result
accessors.  Variants share no base class; a flat protocol plus
per-variant state is all the engine needs.

Only the binary (case/control) variant ships here:
:class:`ClassificationModel`.  A continuous-outcome variant can be
added by implementing the protocol and calling :func:`register_model`.

Pipeline
~~~~~~~~
``fit()`` is a single forward pass::

    GenotypeData ─► CellIndexer ─► count_cells ─► classify_cells
                                               ─► compute_test_statistic

Each stage depends on the complete output of the previous one.  A
structural error at any stage (bad selection, empty dataset, genotype
code out of range, non-binary outcome) aborts the run and propagates;
the model then holds no result.  Calling ``fit()`` again recomputes
everything from scratch.

Value semantics
~~~~~~~~~~~~~~~
A model references the caller's dataset view without copying it and
owns its fitted state exclusively.  Copying or pickling a model raises
``TypeError``; build a new model instead.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

import numpy as np
from sklearn.exceptions import NotFittedError
from sklearn.metrics import balanced_accuracy_score, roc_auc_score

from ._config import get_baseline
from ._context import FitContext, FitStage
from ._errors import InputShapeError
from ._results import ClassificationResult
from ._typing import FeatureKey
from .cells import CellIndexer, case_mask, count_cells
from .classification import RiskLabel, classify_cells
from .data import GenotypeData
from .statistic import (
    RiskTable,
    cell_association,
    compute_test_statistic,
    risk_table_diagnostics,
    statistic_p_value,
)

# ------------------------------------------------------------------ #
# CellModel protocol
# ------------------------------------------------------------------ #


@runtime_checkable
class CellModel(Protocol):
    """Interface that every outcome-specific cell model implements.

    Attributes:
        kind: Short identifier of the outcome type (e.g.
            ``"binary"``).
        order: Number of combined features.
        features: Selected feature indices.
        alpha: Significance level carried for the caller.

    Every member is readable before :meth:`fit`.  The test statistic
    is read from the object ``fit()`` returns.
    """

    @property
    def kind(self) -> str: ...

    @property
    def order(self) -> int: ...

    @property
    def features(self) -> tuple[int, ...]: ...

    @property
    def alpha(self) -> float: ...

    @property
    def is_fitted(self) -> bool: ...

    def fit(self) -> Any:
        """Run the full pipeline once and return the result object."""
        ...


# ------------------------------------------------------------------ #
# Selection validation
# ------------------------------------------------------------------ #


def _validate_selection(
    data: GenotypeData,
    order: int,
    features: Sequence[FeatureKey],
) -> tuple[int, ...]:
    """Resolve *features* to indices and check them against *order*.

    Raises:
        InputShapeError: On any shape problem.  Nothing is counted.
    """
    if isinstance(order, bool) or not isinstance(order, (int, np.integer)):
        msg = f"order must be an integer, got {type(order).__name__}."
        raise InputShapeError(msg)
    if order < 1:
        msg = f"order must be at least 1, got {order}."
        raise InputShapeError(msg)
    if isinstance(features, (str, bytes)):
        msg = "features must be a sequence of feature indices or names."
        raise InputShapeError(msg)
    features = list(features)
    if len(features) != order:
        msg = (
            f"Expected {order} selected feature(s) for order={order}, "
            f"got {len(features)}."
        )
        raise InputShapeError(msg)
    if order > data.feature_count():
        msg = (
            f"order={order} exceeds the number of features in the dataset "
            f"({data.feature_count()})."
        )
        raise InputShapeError(msg)

    indices = tuple(data.feature_index(key) for key in features)
    if len(set(indices)) != len(indices):
        msg = f"Selected features must be distinct, got indices {list(indices)}."
        raise InputShapeError(msg)
    if data.observation_count() == 0:
        msg = "The dataset must contain at least one observation."
        raise InputShapeError(msg)
    return indices


# ------------------------------------------------------------------ #
# ClassificationModel
# ------------------------------------------------------------------ #


class ClassificationModel:
    """Risk-cell classification model for a binary outcome.

    Args:
        data: Read-only dataset view.  Referenced, never copied.
        order: Interaction order; number of combined features.
        features: Selected feature indices or names, ``len == order``.
        alpha: Significance level in ``(0, 1)``.  Carried on the result
            for the caller's significance decisions and used as the
            coverage of the odds-ratio interval.
        min_cell_size: Non-empty cells with fewer observations are
            labelled ``SPARSE`` and left out of the statistic.
            ``0`` (the default) keeps every non-empty cell.
        baseline: ``"mu"``, ``"out_of_cell"``, or ``None`` to use the
            configured default (see :mod:`mbmdr._config`).
        logger: Destination for progress messages.  Purely
            observational; defaults to this module's logger.

    Raises:
        InputShapeError: If the selection does not match *order*,
            repeats a feature, names an unknown feature, or the dataset
            is empty.
        ValueError: If *alpha*, *min_cell_size*, or *baseline* is
            invalid.
    """

    kind = "binary"

    def __init__(
        self,
        data: GenotypeData,
        order: int,
        features: Sequence[FeatureKey],
        alpha: float = 0.1,
        *,
        min_cell_size: int = 0,
        baseline: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if not isinstance(data, GenotypeData):
            msg = f"data must be a GenotypeData view, got {type(data).__name__}."
            raise TypeError(msg)
        self._features = _validate_selection(data, order, features)
        if not 0.0 < alpha < 1.0:
            msg = f"alpha must lie in (0, 1), got {alpha}."
            raise ValueError(msg)
        if min_cell_size < 0:
            msg = f"min_cell_size must be non-negative, got {min_cell_size}."
            raise ValueError(msg)

        self._data = data
        self._order = int(order)
        self._alpha = float(alpha)
        self._min_cell_size = int(min_cell_size)
        # Resolved eagerly so an unknown name fails at construction.
        self._baseline_arg = baseline
        get_baseline(baseline)
        self._log = logger if logger is not None else logging.getLogger(__name__)
        self._indexer = CellIndexer.for_selection(data, self._features)
        self._result: ClassificationResult | None = None

    # ---- Value semantics ---------------------------------------------

    def __copy__(self) -> ClassificationModel:
        msg = f"{type(self).__name__} objects cannot be copied."
        raise TypeError(msg)

    def __deepcopy__(self, memo: dict[int, Any]) -> ClassificationModel:
        msg = f"{type(self).__name__} objects cannot be copied."
        raise TypeError(msg)

    def __reduce_ex__(self, protocol: Any) -> Any:
        msg = f"{type(self).__name__} objects cannot be pickled."
        raise TypeError(msg)

    # ---- Construction parameters ---------------------------------------

    @property
    def data(self) -> GenotypeData:
        return self._data

    @property
    def order(self) -> int:
        return self._order

    @property
    def features(self) -> tuple[int, ...]:
        return self._features

    @property
    def feature_names(self) -> tuple[str, ...]:
        return tuple(self._data.feature_names[j] for j in self._features)

    @property
    def alpha(self) -> float:
        return self._alpha

    @property
    def min_cell_size(self) -> int:
        return self._min_cell_size

    @property
    def indexer(self) -> CellIndexer:
        return self._indexer

    # ---- Fitting -------------------------------------------------------

    def fit(self) -> ClassificationResult:
        """Count, classify, and compute the test statistic.

        Every call starts from an empty :class:`~mbmdr._context.FitContext`;
        a failed call leaves the model unfitted.

        Returns:
            The :class:`~mbmdr._results.ClassificationResult` of this run.

        Raises:
            DataDomainError: If a genotype code is outside its
                cardinality or the outcome is not coded 0/1.
        """
        self._result = None
        ctx = FitContext(
            features=self._features,
            feature_names=self.feature_names,
            baseline=get_baseline(self._baseline_arg),
            indexer=self._indexer,
        )
        self._log.debug(
            "Fitting %s model on features %s (order=%d)",
            self.kind,
            list(ctx.feature_names),
            self._order,
        )

        # ---- Stage 1: counting ---------------------------------------
        is_case = case_mask(self._data.outcomes)
        ctx.cell_ids = self._indexer.encode_selection(self._data, self._features)
        ctx.cell_stats = count_cells(ctx.cell_ids, is_case, self._indexer.n_cells)
        ctx.advance(FitStage.COUNTED)
        self._warn_if_single_class(ctx)

        # ---- Stage 2: classification ----------------------------------
        ctx.labels = classify_cells(
            ctx.cell_stats,
            baseline=ctx.baseline,
            min_cell_size=self._min_cell_size,
        )
        ctx.advance(FitStage.CLASSIFIED)

        # ---- Stage 3: test statistic ----------------------------------
        ctx.risk_table = RiskTable.from_cells(ctx.cell_stats, ctx.labels)
        ctx.statistic = compute_test_statistic(ctx.risk_table, ctx.cell_stats.mu)
        ctx.advance(FitStage.STATISTIC_COMPUTED)

        cell_chi2, cell_p = cell_association(ctx.cell_stats)
        stats = ctx.cell_stats
        result = ClassificationResult(
            features=self._features,
            feature_names=ctx.feature_names,
            cardinalities=self._indexer.cardinalities,
            cases=stats.cases,
            controls=stats.controls,
            case_prob_in_cell=stats.case_prob_in_cell,
            case_prob_out_cell=stats.case_prob_out_cell,
            mu=stats.mu,
            n_observations=stats.n_observations,
            labels=ctx.labels,
            baseline=ctx.baseline,
            min_cell_size=self._min_cell_size,
            risk_table=ctx.risk_table,
            statistic=ctx.statistic,
            p_value=statistic_p_value(ctx.statistic),
            alpha=self._alpha,
            cell_statistics=cell_chi2,
            cell_p_values=cell_p,
            diagnostics=risk_table_diagnostics(ctx.risk_table, self._alpha),
            context=ctx,
        )
        ctx.advance(FitStage.DONE)

        self._log.debug(
            "Fitted %s: %d high / %d low cell(s), statistic=%.6g",
            list(ctx.feature_names),
            int(result.high_risk_cells.size),
            int(result.low_risk_cells.size),
            result.statistic,
        )
        self._result = result
        return result

    def _warn_if_single_class(self, ctx: FitContext) -> None:
        stats = ctx.cell_stats
        if stats.total_cases == 0 or stats.total_controls == 0:
            missing = "cases" if stats.total_cases == 0 else "controls"
            msg = (
                f"The outcome contains no {missing}; every cell ties with the "
                f"baseline and the test statistic is 0."
            )
            ctx.warnings_captured.append(msg)
            self._log.debug(msg)
            warnings.warn(msg, UserWarning, stacklevel=3)

    # ---- Fitted state --------------------------------------------------

    @property
    def is_fitted(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> ClassificationResult:
        """Result of the last successful :meth:`fit`.

        Raises:
            NotFittedError: If the model has not been fitted.
        """
        if self._result is None:
            msg = f"{type(self).__name__} has not been fitted; call fit() first."
            raise NotFittedError(msg)
        return self._result

    @property
    def statistic(self) -> float:
        return self.result.statistic

    @property
    def cases(self) -> np.ndarray:
        return self.result.cases

    @property
    def controls(self) -> np.ndarray:
        return self.result.controls

    @property
    def labels(self) -> np.ndarray:
        return self.result.labels

    @property
    def mu(self) -> float:
        return self.result.mu

    # ---- Prediction ------------------------------------------------------

    def _check_layout(self, data: GenotypeData) -> None:
        if data.feature_count() != self._data.feature_count():
            msg = (
                f"Prediction data has {data.feature_count()} features; the "
                f"model was fitted on {self._data.feature_count()}."
            )
            raise InputShapeError(msg)
        cards = tuple(data.cardinality(j) for j in self._features)
        if cards != self._indexer.cardinalities:
            msg = (
                f"Prediction data cardinalities {cards} differ from the "
                f"fitted {self._indexer.cardinalities}."
            )
            raise InputShapeError(msg)

    def predict(
        self,
        data: GenotypeData | None = None,
        type: str = "response",
        empty_as_nan: bool = False,
    ) -> np.ndarray:
        """Apply the fitted cell classification to observations.

        Args:
            data: View with the same feature layout as the training
                view.  Defaults to the training view.
            type: ``"prob"`` — case probability of the observation's
                cell; ``"response"`` — that probability rounded to
                0/1; ``"score"`` — +1 for high-risk, −1 for low-risk,
                0 for non-informative cells; ``"scoreprob"`` — the score
                rescaled to ``[0, 1]`` over the predicted observations
                (0.5 everywhere when all scores are equal).
            empty_as_nan: For ``"prob"`` and ``"response"``, return NaN
                instead of ``mu`` for observations in empty or sparse
                cells.

        Returns:
            Float array of shape ``(N,)``.

        Raises:
            NotFittedError: If the model has not been fitted.
            ValueError: If *type* is unknown.
        """
        if type not in ("response", "prob", "score", "scoreprob"):
            msg = (
                f"Invalid type '{type}'. Choose 'response', 'prob', "
                f"'score', or 'scoreprob'."
            )
            raise ValueError(msg)
        result = self.result
        data = self._data if data is None else data
        self._check_layout(data)

        cell_ids = self._indexer.encode_selection(data, self._features)
        labels = result.labels[cell_ids]

        if type in ("score", "scoreprob"):
            score = np.zeros(cell_ids.shape[0])
            score[labels == RiskLabel.HIGH] = 1.0
            score[labels == RiskLabel.LOW] = -1.0
            if type == "score" or score.size == 0:
                return score
            lo, hi = score.min(), score.max()
            if hi == lo:
                return np.full(score.shape[0], 0.5)
            return (score - lo) / (hi - lo)

        informative = (labels == RiskLabel.HIGH) | (labels == RiskLabel.LOW)
        fallback = np.nan if empty_as_nan else result.mu
        prob = np.where(informative, result.case_prob_in_cell[cell_ids], fallback)
        if type == "prob":
            return prob
        # Half-up rounding; NaN propagates.
        return np.floor(prob + 0.5)

    def evaluate(self, data: GenotypeData | None = None, metric: str = "auc") -> float:
        """Score the fitted classification against observed outcomes.

        Args:
            data: View to evaluate on; defaults to the training view.
            metric: ``"auc"`` (ROC AUC of the predicted probabilities)
                or ``"bac"`` (balanced accuracy of the 0/1 response).

        Returns:
            The metric value, or NaN when the outcome has a single
            class and the metric is undefined.
        """
        if metric not in ("auc", "bac"):
            msg = f"Invalid metric '{metric}'. Choose 'auc' or 'bac'."
            raise ValueError(msg)
        data = self._data if data is None else data
        y_true = case_mask(data.outcomes).astype(int)
        if np.unique(y_true).size < 2:
            return float("nan")
        if metric == "auc":
            return float(roc_auc_score(y_true, self.predict(data, type="prob")))
        y_pred = self.predict(data, type="response").astype(int)
        return float(balanced_accuracy_score(y_true, y_pred))

    def __repr__(self) -> str:
        state = "fitted" if self.is_fitted else "unfitted"
        return (
            f"{type(self).__name__}(order={self._order}, "
            f"features={list(self.feature_names)}, alpha={self._alpha}, {state})"
        )


# ------------------------------------------------------------------ #
# Model registry
# ------------------------------------------------------------------ #

_MODELS: dict[str, type] = {}
"""Registry mapping outcome kinds to concrete CellModel classes."""


def register_model(kind: str, cls: type) -> None:
    """Register a concrete ``CellModel`` class under *kind*.

    Args:
        kind: Lookup key (e.g. ``"binary"``).
        cls: A class implementing the ``CellModel`` protocol.

    Raises:
        TypeError: If *cls* does not provide the protocol members.
    """
    missing = [
        name
        for name in ("kind", "order", "features", "alpha", "is_fitted", "fit")
        if not hasattr(cls, name)
    ]
    if missing:
        msg = f"{cls!r} does not implement the CellModel protocol (missing {missing})."
        raise TypeError(msg)
    _MODELS[kind] = cls


def resolve_model(kind: str, outcome: np.ndarray | None = None) -> type:
    """Resolve an outcome kind to a registered model class.

    ``"auto"`` picks ``"binary"`` when every outcome is 0 or 1 and
    ``"continuous"`` otherwise; the latter only resolves when an
    external variant has been registered.

    Raises:
        ValueError: If *kind* is ``"auto"`` without *outcome*, or no
            model is registered for the resolved kind.
    """
    if kind == "auto":
        if outcome is None:
            msg = "resolve_model() requires 'outcome' when kind='auto'."
            raise ValueError(msg)
        values = np.asarray(outcome, dtype=np.float64)
        kind = "binary" if bool(np.all(np.isin(values, [0.0, 1.0]))) else "continuous"

    if kind not in _MODELS:
        available = ", ".join(sorted(_MODELS)) or "(none registered)"
        msg = f"No model registered for outcome kind {kind!r}.  Available: {available}."
        raise ValueError(msg)
    return _MODELS[kind]


register_model("binary", ClassificationModel)


__all__ = [
    "CellModel",
    "ClassificationModel",
    "register_model",
    "resolve_model",
]
