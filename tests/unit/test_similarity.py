"""
Unit tests for cosine scoring and exact ranking.
"""

import math

import numpy as np
import pytest

from resource_rag.errors import ValidationError
from resource_rag.similarity import cosine_distance, cosine_similarity, rank_by_similarity


class TestCosine:
    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)

    def test_scale_invariant(self):
        assert cosine_similarity([1.0, 2.0], [10.0, 20.0]) == pytest.approx(1.0)

    def test_distance_is_one_minus_similarity(self):
        a, b = [1.0, 0.0], [1.0, 1.0]
        assert cosine_distance(a, b) == pytest.approx(1.0 - 1.0 / math.sqrt(2))

    def test_dimension_mismatch(self):
        with pytest.raises(ValidationError, match="dimensions"):
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])

    def test_zero_vector(self):
        with pytest.raises(ValidationError):
            cosine_similarity([0.0, 0.0], [1.0, 0.0])

    def test_empty_vector(self):
        with pytest.raises(ValidationError):
            cosine_similarity([], [])


class TestRankBySimilarity:
    def test_threshold_is_strict(self):
        # (1,1,1,1) vs (1,0,0,0) has similarity exactly 0.5
        matrix = np.array([[1.0, 1.0, 1.0, 1.0], [1.0, 0.1, 0.0, 0.0]])
        ranked = rank_by_similarity([1.0, 0.0, 0.0, 0.0], matrix, 0.5, 4)

        assert [idx for idx, _ in ranked] == [1]

    def test_descending_order_and_limit(self):
        matrix = np.array([[1.0, float(i)] for i in range(10)])
        ranked = rank_by_similarity([1.0, 0.0], matrix, -1.0, 4)

        assert len(ranked) == 4
        scores = [score for _, score in ranked]
        assert scores == sorted(scores, reverse=True)
        assert ranked[0][0] == 0

    def test_ties_keep_row_order(self):
        matrix = np.array([[0.0, 1.0], [2.0, 0.0], [3.0, 0.0], [1.0, 0.0]])
        ranked = rank_by_similarity([1.0, 0.0], matrix, 0.5, 4)

        assert [idx for idx, _ in ranked] == [1, 2, 3]

    def test_zero_rows_never_returned(self):
        matrix = np.array([[0.0, 0.0], [1.0, 0.0]])
        ranked = rank_by_similarity([1.0, 0.0], matrix, -1.0, 4)

        assert [idx for idx, _ in ranked] == [1]

    def test_empty_matrix(self):
        assert rank_by_similarity([1.0], np.zeros((0, 1)), 0.5, 4) == []

    def test_dimension_mismatch(self):
        with pytest.raises(ValidationError):
            rank_by_similarity([1.0, 0.0], np.ones((2, 3)), 0.5, 4)
