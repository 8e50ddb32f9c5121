"""Tests for high/low-risk cell labelling."""

import numpy as np
import pytest

from mbmdr import CellIndexer, GenotypeData, RiskLabel, classify_cells, count_cells
from mbmdr.cells import case_mask
from mbmdr.classification import baseline_probabilities

# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _stats(cell_ids, outcomes, n_cells):
    return count_cells(
        np.asarray(cell_ids), np.asarray(outcomes, dtype=float) == 1.0, n_cells
    )


def _random_stats(seed: int = 0):
    rng = np.random.default_rng(seed)
    view = GenotypeData(
        rng.integers(0, 3, size=(200, 3)), rng.integers(0, 2, size=200).astype(float)
    )
    indexer = CellIndexer.for_selection(view, [0, 1])
    return count_cells(
        indexer.encode_selection(view, [0, 1]),
        case_mask(view.outcomes),
        indexer.n_cells,
    )


# ------------------------------------------------------------------ #
# RiskLabel
# ------------------------------------------------------------------ #


class TestRiskLabel:
    def test_codes(self):
        assert RiskLabel.HIGH.code == "H"
        assert RiskLabel.LOW.code == "L"
        assert RiskLabel.EMPTY.code == "E"
        assert RiskLabel.SPARSE.code == "S"

    def test_informative(self):
        assert RiskLabel.HIGH.informative
        assert RiskLabel.LOW.informative
        assert not RiskLabel.EMPTY.informative
        assert not RiskLabel.SPARSE.informative


# ------------------------------------------------------------------ #
# classify_cells
# ------------------------------------------------------------------ #


class TestClassifyCells:
    def test_pure_case_cell_is_high(self):
        stats = _stats([0, 0, 1, 1, 1], [1, 1, 1, 0, 0], n_cells=2)
        labels = classify_cells(stats)
        assert stats.case_prob_in_cell[0] == 1.0
        assert stats.mu < 1.0
        assert labels[0] == RiskLabel.HIGH
        assert labels[1] == RiskLabel.LOW

    def test_tie_is_low(self):
        stats = _stats([0, 0, 1, 1], [1, 0, 1, 0], n_cells=2)
        labels = classify_cells(stats)
        assert stats.case_prob_in_cell.tolist() == [0.5, 0.5]
        assert stats.mu == 0.5
        assert labels.tolist() == [RiskLabel.LOW, RiskLabel.LOW]

    def test_tie_is_low_with_out_of_cell_baseline(self):
        stats = _stats([0, 0, 1, 1], [1, 0, 1, 0], n_cells=2)
        labels = classify_cells(stats, baseline="out_of_cell")
        assert labels.tolist() == [RiskLabel.LOW, RiskLabel.LOW]

    def test_empty_cell(self):
        stats = _stats([0, 0, 2, 2], [1, 1, 0, 0], n_cells=3)
        labels = classify_cells(stats)
        assert labels[1] == RiskLabel.EMPTY

    def test_min_cell_size_marks_sparse(self):
        stats = _stats([0, 0, 0, 1, 2, 2, 2], [1, 1, 0, 1, 0, 0, 1], n_cells=4)
        labels = classify_cells(stats, min_cell_size=2)
        assert labels[1] == RiskLabel.SPARSE
        assert labels[3] == RiskLabel.EMPTY
        assert labels[0] == RiskLabel.HIGH
        assert labels[2] == RiskLabel.LOW

    def test_min_cell_size_zero_keeps_singletons(self):
        stats = _stats([0, 1], [1, 0], n_cells=2)
        labels = classify_cells(stats, min_cell_size=0)
        assert labels.tolist() == [RiskLabel.HIGH, RiskLabel.LOW]

    def test_whole_dataset_cell_is_low_under_out_of_cell(self):
        stats = _stats([1, 1, 1], [1, 0, 0], n_cells=2)
        labels = classify_cells(stats, baseline="out_of_cell")
        assert labels[1] == RiskLabel.LOW
        assert labels[0] == RiskLabel.EMPTY

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_baselines_agree(self, seed):
        stats = _random_stats(seed)
        np.testing.assert_array_equal(
            classify_cells(stats, baseline="mu"),
            classify_cells(stats, baseline="out_of_cell"),
        )

    def test_pure_function(self):
        stats = _random_stats()
        before = stats.cases.copy()
        a = classify_cells(stats)
        b = classify_cells(stats)
        np.testing.assert_array_equal(a, b)
        np.testing.assert_array_equal(stats.cases, before)

    def test_labels_read_only(self):
        labels = classify_cells(_random_stats())
        with pytest.raises(ValueError):
            labels[0] = RiskLabel.HIGH

    def test_unknown_baseline(self):
        with pytest.raises(ValueError, match="Unknown baseline"):
            classify_cells(_random_stats(), baseline="median")

    def test_negative_min_cell_size(self):
        with pytest.raises(ValueError, match="non-negative"):
            classify_cells(_random_stats(), min_cell_size=-1)


class TestBaselineProbabilities:
    def test_mu_is_constant(self):
        stats = _random_stats()
        ref = baseline_probabilities(stats, "mu")
        assert ref.shape == (stats.n_cells,)
        assert np.all(ref == stats.mu)

    def test_out_of_cell_is_stats_column(self):
        stats = _random_stats()
        ref = baseline_probabilities(stats, "out_of_cell")
        np.testing.assert_array_equal(ref, stats.case_prob_out_cell)
