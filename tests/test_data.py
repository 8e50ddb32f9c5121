"""Tests for the read-only GenotypeData view."""

import numpy as np
import pandas as pd
import pytest

from mbmdr import DataDomainError, GenotypeData, InputShapeError, MBMDRError

# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def genotypes():
    return np.array([[0, 1, 2], [1, 1, 0], [2, 0, 1], [0, 2, 2]], dtype=np.int64)


@pytest.fixture()
def outcome():
    return np.array([1.0, 0.0, 1.0, 0.0])


@pytest.fixture()
def view(genotypes, outcome):
    return GenotypeData(genotypes, outcome, feature_names=["rs1", "rs2", "rs3"])


# ------------------------------------------------------------------ #
# Accessors
# ------------------------------------------------------------------ #


class TestAccessors:
    def test_counts(self, view):
        assert view.observation_count() == 4
        assert view.feature_count() == 3
        assert len(view) == 4

    def test_outcome(self, view):
        assert view.outcome(0) == 1.0
        assert view.outcome(3) == 0.0

    def test_feature_value(self, view):
        assert view.feature_value(0, 2) == 2
        assert view.feature_value(2, 0) == 2

    def test_default_cardinality_is_three(self, view):
        assert view.cardinality(0) == 3
        assert view.cardinalities.tolist() == [3, 3, 3]

    def test_per_feature_cardinality(self, genotypes, outcome):
        view = GenotypeData(genotypes, outcome, cardinality=[3, 4, 5])
        assert view.cardinality(2) == 5

    def test_default_names(self, genotypes, outcome):
        view = GenotypeData(genotypes, outcome)
        assert view.feature_names == ("x1", "x2", "x3")
        assert view.outcome_name == "y"

    def test_feature_column(self, view):
        assert view.feature_column(1).tolist() == [1, 1, 0, 2]

    def test_columns_selection_order(self, view):
        assert view.columns([2, 0]).tolist() == [[2, 0], [0, 1], [1, 2], [2, 0]]

    def test_feature_index_by_name(self, view):
        assert view.feature_index("rs2") == 1
        assert view.feature_index(2) == 2

    def test_unknown_name_raises(self, view):
        with pytest.raises(InputShapeError, match="Unknown feature name"):
            view.feature_index("rs9")

    @pytest.mark.parametrize("key", [0.9, 1.0, True, None])
    def test_non_integer_key_raises(self, view, key):
        with pytest.raises(InputShapeError, match="integer indices or names"):
            view.feature_index(key)

    def test_numpy_integer_key(self, view):
        assert view.feature_index(np.int64(2)) == 2

    def test_feature_index_out_of_range_raises(self, view):
        with pytest.raises(InputShapeError, match="out of range"):
            view.feature_index(3)


class TestBounds:
    def test_observation_out_of_range(self, view):
        with pytest.raises(IndexError):
            view.outcome(4)

    def test_negative_observation(self, view):
        with pytest.raises(IndexError):
            view.feature_value(-1, 0)

    def test_feature_out_of_range(self, view):
        with pytest.raises(IndexError):
            view.feature_value(0, 3)

    def test_columns_out_of_range(self, view):
        with pytest.raises(IndexError):
            view.columns([0, 5])


# ------------------------------------------------------------------ #
# Read-only, borrowed storage
# ------------------------------------------------------------------ #


class TestReadOnly:
    def test_genotypes_not_writeable(self, view):
        with pytest.raises(ValueError):
            view.genotypes[0, 0] = 2

    def test_outcomes_not_writeable(self, view):
        with pytest.raises(ValueError):
            view.outcomes[0] = 0.0

    def test_columns_not_writeable(self, view):
        with pytest.raises(ValueError):
            view.columns([0])[0, 0] = 1

    def test_no_copy_of_matching_dtype(self, genotypes, outcome, view):
        assert np.shares_memory(view.genotypes, genotypes)
        assert np.shares_memory(view.outcomes, outcome)

    def test_caller_array_stays_writeable(self, genotypes, view):
        assert genotypes.flags.writeable
        assert not view.genotypes.flags.writeable


# ------------------------------------------------------------------ #
# Shape validation
# ------------------------------------------------------------------ #


class TestValidation:
    def test_integral_floats_accepted(self, outcome):
        view = GenotypeData(np.array([[0.0], [1.0], [2.0], [1.0]]), outcome)
        assert view.genotypes.dtype == np.int64
        assert view.feature_value(2, 0) == 2

    def test_non_integral_rejected(self, outcome):
        with pytest.raises(DataDomainError, match="integer codes"):
            GenotypeData(np.array([[0.5], [1.0], [2.0], [1.0]]), outcome)

    def test_missing_genotype_is_a_domain_error(self, outcome):
        with pytest.raises(DataDomainError, match="missing or fractional"):
            GenotypeData(np.array([[0.0], [np.nan], [2.0], [1.0]]), outcome)

    def test_one_dimensional_matrix_rejected(self, outcome):
        with pytest.raises(InputShapeError, match="2-D"):
            GenotypeData(np.array([0, 1, 2, 1]), outcome)

    def test_two_dimensional_outcome_rejected(self, genotypes):
        with pytest.raises(InputShapeError, match="1-D"):
            GenotypeData(genotypes, np.zeros((4, 1)))

    def test_length_mismatch_rejected(self, genotypes):
        with pytest.raises(InputShapeError, match="4 rows but outcome has 3"):
            GenotypeData(genotypes, np.array([0.0, 1.0, 0.0]))

    def test_cardinality_length_mismatch(self, genotypes, outcome):
        with pytest.raises(InputShapeError, match="cardinality"):
            GenotypeData(genotypes, outcome, cardinality=[3, 3])

    def test_non_positive_cardinality(self, genotypes, outcome):
        with pytest.raises(ValueError, match="at least 1"):
            GenotypeData(genotypes, outcome, cardinality=0)

    def test_duplicate_names(self, genotypes, outcome):
        with pytest.raises(InputShapeError, match="unique"):
            GenotypeData(genotypes, outcome, feature_names=["a", "a", "b"])

    def test_empty_dataset_is_a_valid_view(self):
        view = GenotypeData(np.empty((0, 2), dtype=np.int64), np.empty(0))
        assert view.observation_count() == 0
        assert view.feature_count() == 2


# ------------------------------------------------------------------ #
# from_frame
# ------------------------------------------------------------------ #


class TestFromFrame:
    def test_numeric_outcome(self):
        df = pd.DataFrame({"snp1": [0, 1, 2], "snp2": [2, 2, 0], "status": [1, 0, 1]})
        view = GenotypeData.from_frame(df, "status")
        assert view.feature_names == ("snp1", "snp2")
        assert view.outcome_name == "status"
        assert view.outcomes.tolist() == [1.0, 0.0, 1.0]

    def test_feature_subset_and_order(self):
        df = pd.DataFrame({"a": [0, 1], "b": [1, 2], "c": [2, 0], "y": [0, 1]})
        view = GenotypeData.from_frame(df, "y", features=["c", "a"])
        assert view.feature_names == ("c", "a")
        assert view.genotypes.tolist() == [[2, 0], [0, 1]]

    def test_categorical_outcome_first_level_is_control(self):
        status = pd.Categorical(
            ["case", "control", "case"], categories=["control", "case"]
        )
        df = pd.DataFrame({"snp": [0, 1, 2], "status": status})
        view = GenotypeData.from_frame(df, "status")
        assert view.outcomes.tolist() == [1.0, 0.0, 1.0]

    def test_categorical_outcome_needs_two_levels(self):
        status = pd.Categorical(["a", "b", "c"])
        df = pd.DataFrame({"snp": [0, 1, 2], "status": status})
        with pytest.raises(InputShapeError, match="exactly two"):
            GenotypeData.from_frame(df, "status")

    def test_text_outcome_uses_sorted_labels(self):
        df = pd.DataFrame(
            {"snp": [0, 1, 2, 1], "status": ["treated", "control", "treated", "control"]}
        )
        view = GenotypeData.from_frame(df, "status")
        assert view.outcomes.tolist() == [1.0, 0.0, 1.0, 0.0]

    def test_text_outcome_with_three_labels(self):
        df = pd.DataFrame({"snp": [0, 1, 2], "status": ["case", "control", "unknown"]})
        with pytest.raises(MBMDRError, match="exactly two"):
            GenotypeData.from_frame(df, "status")

    def test_text_outcome_missing_label_fails_binary_check(self):
        from mbmdr.cells import case_mask

        df = pd.DataFrame({"snp": [0, 1, 2], "status": ["case", None, "control"]})
        view = GenotypeData.from_frame(df, "status")
        with pytest.raises(DataDomainError):
            case_mask(view.outcomes)

    def test_boolean_outcome(self):
        df = pd.DataFrame({"snp": [0, 1], "status": [True, False]})
        assert GenotypeData.from_frame(df, "status").outcomes.tolist() == [1.0, 0.0]

    def test_nullable_outcome_becomes_nan(self):
        df = pd.DataFrame({"snp": [0, 1], "status": pd.array([1, None], dtype="Int64")})
        view = GenotypeData.from_frame(df, "status")
        assert view.outcomes[0] == 1.0
        assert np.isnan(view.outcomes[1])

    def test_missing_outcome_column(self):
        df = pd.DataFrame({"snp": [0, 1]})
        with pytest.raises(InputShapeError, match="Outcome column"):
            GenotypeData.from_frame(df, "status")

    def test_missing_feature_column(self):
        df = pd.DataFrame({"snp": [0, 1], "y": [0, 1]})
        with pytest.raises(InputShapeError, match="not found"):
            GenotypeData.from_frame(df, "y", features=["snp", "other"])

    def test_rejects_non_frame(self):
        with pytest.raises(TypeError, match="must be a pandas"):
            GenotypeData.from_frame({"snp": [0, 1], "y": [0, 1]}, "y")
