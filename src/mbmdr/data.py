"""Read-only dataset view over a genotype matrix and an outcome vector.

:class:`GenotypeData` wraps an ``(N, F)`` integer matrix of feature
codes and an ``(N,)`` outcome vector.  It never takes ownership of the
caller's data: when the inputs already have a suitable dtype the view
holds the caller's buffers directly, with the NumPy write flag cleared
on its own array objects so that nothing downstream can mutate them
through the view.

Each feature carries a known *cardinality*, the number of distinct
codes it may take.  Genotypes coded ``0/1/2`` (homozygous reference,
heterozygous, homozygous alternative) have cardinality 3, which is the
default.  Cell indexing relies on these cardinalities to build a dense,
collision-free cell space (see :mod:`mbmdr.cells`).

The view is immutable and can be shared freely between models fitting
different feature combinations, including from multiple threads.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import pandas as pd

from ._compat import DataFrameLike, _as_pandas_frame
from ._errors import DataDomainError, InputShapeError
from ._typing import FeatureKey

DEFAULT_CARDINALITY = 3


def _readonly(arr: np.ndarray) -> np.ndarray:
    """Return a view of *arr* whose write flag is cleared."""
    view = arr.view()
    view.flags.writeable = False
    return view


class GenotypeData:
    """Immutable view of ``N`` observations × ``F`` integer features.

    Args:
        genotypes: Integer matrix of shape ``(N, F)``.  Float input is
            accepted when every entry is integral.
        outcome: Outcome vector of shape ``(N,)``.  Real-valued; the
            binary classification model requires ``{0, 1}`` coding.
        cardinality: Number of codes per feature.  An ``int`` applies
            to every feature; a sequence gives one value per feature.
        feature_names: Optional column names, one per feature.
        outcome_name: Optional outcome label used by display helpers.

    Raises:
        InputShapeError: If the matrix is not 2-D, the outcome is not
            1-D, their lengths differ, or the names / cardinalities do
            not match the feature count.
        DataDomainError: If a genotype entry is missing (NaN) or not
            integral.
    """

    def __init__(
        self,
        genotypes: np.ndarray,
        outcome: np.ndarray,
        *,
        cardinality: int | Sequence[int] = DEFAULT_CARDINALITY,
        feature_names: Sequence[str] | None = None,
        outcome_name: str | None = None,
    ) -> None:
        genotypes = np.asarray(genotypes)
        outcome = np.asarray(outcome)

        if genotypes.ndim != 2:
            msg = f"genotypes must be a 2-D matrix, got {genotypes.ndim} dimension(s)."
            raise InputShapeError(msg)
        if outcome.ndim != 1:
            msg = f"outcome must be a 1-D vector, got {outcome.ndim} dimension(s)."
            raise InputShapeError(msg)
        if genotypes.shape[0] != outcome.shape[0]:
            msg = (
                f"genotypes has {genotypes.shape[0]} rows but outcome has "
                f"{outcome.shape[0]} entries."
            )
            raise InputShapeError(msg)

        if not np.issubdtype(genotypes.dtype, np.integer):
            if genotypes.size and not np.all(np.equal(np.mod(genotypes, 1), 0)):
                msg = (
                    "genotypes must contain integer codes; missing or "
                    "fractional values are not valid genotypes."
                )
                raise DataDomainError(msg)
            genotypes = genotypes.astype(np.int64)
        if not np.issubdtype(outcome.dtype, np.floating):
            outcome = outcome.astype(np.float64)

        n_feat = genotypes.shape[1]

        if isinstance(cardinality, (int, np.integer)):
            cards = np.full(n_feat, int(cardinality), dtype=np.int64)
        else:
            cards = np.asarray(list(cardinality), dtype=np.int64)
            if cards.shape != (n_feat,):
                msg = (
                    f"cardinality has {cards.size} entries but the matrix has "
                    f"{n_feat} features."
                )
                raise InputShapeError(msg)
        if np.any(cards < 1):
            msg = "Every feature cardinality must be at least 1."
            raise ValueError(msg)

        if feature_names is None:
            names = [f"x{j + 1}" for j in range(n_feat)]
        else:
            names = [str(name) for name in feature_names]
            if len(names) != n_feat:
                msg = (
                    f"feature_names has {len(names)} entries but the matrix has "
                    f"{n_feat} features."
                )
                raise InputShapeError(msg)
            if len(set(names)) != len(names):
                msg = "feature_names must be unique."
                raise InputShapeError(msg)

        self._genotypes = _readonly(genotypes)
        self._outcome = _readonly(outcome)
        self._cardinality = _readonly(cards)
        self._feature_names = tuple(names)
        self._name_to_index = {name: j for j, name in enumerate(names)}
        self._outcome_name = outcome_name if outcome_name is not None else "y"
        self._n_obs = int(genotypes.shape[0])
        self._n_feat = int(n_feat)

    # ---- Construction from frames -----------------------------------

    @classmethod
    def from_frame(
        cls,
        frame: DataFrameLike,
        outcome: str,
        *,
        features: Sequence[str] | None = None,
        cardinality: int | Sequence[int] = DEFAULT_CARDINALITY,
    ) -> GenotypeData:
        """Build a view from a DataFrame holding genotypes and the outcome.

        A categorical outcome with exactly two levels is coded by level
        order: the first level is the control class (0), the second
        the case class (1).  Text outcomes become categorical with
        their labels sorted, so ``"control"``/``"treated"`` codes
        ``"treated"`` as the case class; pass an ordered
        ``pd.Categorical`` when the labels sort the other way round
        (``"case"`` sorts before ``"control"``).

        Args:
            frame: pandas or Polars DataFrame.
            outcome: Name of the outcome column.
            features: Feature columns to keep.  Defaults to every
                column except *outcome*, in frame order.
            cardinality: Passed through to the constructor.

        Raises:
            InputShapeError: If a named column is missing or the
                categorical outcome does not have two levels.
        """
        frame = _as_pandas_frame(frame, name="frame")
        if outcome not in frame.columns:
            msg = f"Outcome column {outcome!r} not found in frame."
            raise InputShapeError(msg)
        if features is None:
            features = [str(c) for c in frame.columns if c != outcome]
        missing = [f for f in features if f not in frame.columns]
        if missing:
            msg = f"Feature column(s) not found in frame: {missing}."
            raise InputShapeError(msg)

        y = frame[outcome]
        if not isinstance(y.dtype, pd.CategoricalDtype) and not pd.api.types.is_numeric_dtype(
            y.dtype
        ):
            # Text labels become categories in sorted order.
            y = y.astype("category")
        if isinstance(y.dtype, pd.CategoricalDtype):
            if len(y.cat.categories) != 2:
                msg = (
                    f"Categorical outcome {outcome!r} must have exactly two "
                    f"levels, got {len(y.cat.categories)}."
                )
                raise InputShapeError(msg)
            # Missing categories keep code -1 and fail binary validation.
            y_values = y.cat.codes.to_numpy().astype(np.float64)
        else:
            y_values = y.to_numpy(dtype=np.float64, na_value=np.nan)

        return cls(
            frame[list(features)].to_numpy(),
            y_values,
            cardinality=cardinality,
            feature_names=list(features),
            outcome_name=str(outcome),
        )

    # ---- Scalar accessors --------------------------------------------

    def observation_count(self) -> int:
        """Number of observations ``N``."""
        return self._n_obs

    def feature_count(self) -> int:
        """Number of features ``F``."""
        return self._n_feat

    def outcome(self, observation: int) -> float:
        """Outcome value of one observation."""
        self._check_observation(observation)
        return float(self._outcome[observation])

    def feature_value(self, observation: int, feature: int) -> int:
        """Feature code of one observation."""
        self._check_observation(observation)
        self._check_feature(feature)
        return int(self._genotypes[observation, feature])

    def cardinality(self, feature: int) -> int:
        """Number of codes feature *feature* may take."""
        self._check_feature(feature)
        return int(self._cardinality[feature])

    # ---- Vectorised accessors ----------------------------------------

    @property
    def outcomes(self) -> np.ndarray:
        """Read-only outcome vector ``(N,)``."""
        return self._outcome

    @property
    def genotypes(self) -> np.ndarray:
        """Read-only genotype matrix ``(N, F)``."""
        return self._genotypes

    @property
    def cardinalities(self) -> np.ndarray:
        """Read-only per-feature cardinalities ``(F,)``."""
        return self._cardinality

    @property
    def feature_names(self) -> tuple[str, ...]:
        return self._feature_names

    @property
    def outcome_name(self) -> str:
        return self._outcome_name

    def feature_column(self, feature: int) -> np.ndarray:
        """Read-only view of one feature column ``(N,)``."""
        self._check_feature(feature)
        return self._genotypes[:, feature]

    def columns(self, features: Sequence[int]) -> np.ndarray:
        """Matrix ``(N, len(features))`` of the selected columns.

        Fancy indexing returns a copy, which is marked read-only as
        well so callers cannot mistake it for a writable buffer.
        """
        for j in features:
            self._check_feature(j)
        return _readonly(self._genotypes[:, list(features)])

    def feature_index(self, key: FeatureKey) -> int:
        """Resolve a feature name or index to a column index.

        Raises:
            InputShapeError: If the name is unknown, the key is neither a
                name nor an integer, or the index is out of range.
        """
        if isinstance(key, str):
            if key not in self._name_to_index:
                msg = f"Unknown feature name {key!r}."
                raise InputShapeError(msg)
            return self._name_to_index[key]
        if isinstance(key, bool) or not isinstance(key, (int, np.integer)):
            msg = f"Feature keys must be integer indices or names, got {key!r}."
            raise InputShapeError(msg)
        index = int(key)
        if not 0 <= index < self._n_feat:
            msg = (
                f"Feature index {index} is out of range for a dataset with "
                f"{self._n_feat} features."
            )
            raise InputShapeError(msg)
        return index

    # ---- Bounds checks -----------------------------------------------

    def _check_observation(self, observation: int) -> None:
        if not 0 <= observation < self._n_obs:
            msg = f"Observation index {observation} out of range [0, {self._n_obs})."
            raise IndexError(msg)

    def _check_feature(self, feature: int) -> None:
        if not 0 <= feature < self._n_feat:
            msg = f"Feature index {feature} out of range [0, {self._n_feat})."
            raise IndexError(msg)

    def __len__(self) -> int:
        return self._n_obs

    def __repr__(self) -> str:
        return (
            f"GenotypeData(n_observations={self._n_obs}, "
            f"n_features={self._n_feat}, outcome={self._outcome_name!r})"
        )


__all__ = ["DEFAULT_CARDINALITY", "GenotypeData"]
