'''
Tests for the matrix repair utilities in lrpc.utils.matrix_ops.
'''

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal
from hypothesis import given, settings, strategies as st
from hypothesis.extra.numpy import arrays

from lrpc.core.exceptions import (
    DataQualityWarning, DimensionError, NumericWarning, ParameterError
)
from lrpc.utils.matrix_ops import (
    correct_diag, gen_inverse_diag, make_symmetric, precision_to_partial_correlation
)
from tests.conftest import square_matrices


class TestMakeSymmetric:
    """Tests for make_symmetric."""

    def test_min_keeps_smaller_magnitude(self):
        """The entry of smaller magnitude wins, with its sign."""
        matrix = np.array([[1.0, 0.5], [-0.2, 2.0]])
        expected = np.array([[1.0, -0.2], [-0.2, 2.0]])
        assert_array_equal(make_symmetric(matrix, "min"), expected)

    def test_max_keeps_larger_magnitude(self):
        matrix = np.array([[1.0, 0.5], [-0.2, 2.0]])
        expected = np.array([[1.0, 0.5], [0.5, 2.0]])
        assert_array_equal(make_symmetric(matrix, "max"), expected)

    def test_avg_is_mean_with_transpose(self, rng):
        matrix = rng.standard_normal((6, 6))
        assert_allclose(make_symmetric(matrix, "avg"), (matrix + matrix.T) / 2)

    def test_none_returns_unchanged_copy(self, rng):
        matrix = rng.standard_normal((4, 4))
        out = make_symmetric(matrix, "none")
        assert_array_equal(out, matrix)
        assert out is not matrix

    @pytest.mark.parametrize("rule", ["min", "max"])
    def test_opposite_sign_tie_resolves_to_zero(self, rule):
        """Equal magnitudes of opposite sign give an exactly symmetric zero."""
        matrix = np.array([[1.0, 0.5], [-0.5, 1.0]])
        out = make_symmetric(matrix, rule)
        assert out[0, 1] == 0.0
        assert out[1, 0] == 0.0

    def test_input_not_modified(self, rng):
        matrix = rng.standard_normal((5, 5))
        original = matrix.copy()
        make_symmetric(matrix, "min")
        assert_array_equal(matrix, original)

    def test_invalid_rule(self):
        with pytest.raises(ParameterError):
            make_symmetric(np.eye(2), "median")

    def test_non_square_input(self):
        with pytest.raises(DimensionError):
            make_symmetric(np.ones((2, 3)), "min")

    @given(square_matrices(), st.sampled_from(["min", "max", "avg"]))
    @settings(max_examples=50, deadline=None)
    def test_output_is_exactly_symmetric(self, matrix, rule):
        """Property: every rule except 'none' returns an exactly symmetric matrix."""
        out = make_symmetric(matrix, rule)
        assert_array_equal(out, out.T)

    @given(square_matrices())
    @settings(max_examples=50, deadline=None)
    def test_min_never_increases_magnitude(self, matrix):
        out = make_symmetric(matrix, "min")
        bound = np.maximum(np.abs(matrix), np.abs(matrix.T))
        assert np.all(np.abs(out) <= bound)


class TestGenInverseDiag:
    """Tests for gen_inverse_diag."""

    def test_matches_inverse_for_full_rank(self, covariance_matrix, precision_matrix):
        assert_allclose(gen_inverse_diag(covariance_matrix), np.diag(precision_matrix),
                        rtol=1e-10)

    def test_singular_matrix_uses_pseudo_inverse(self):
        gamma = np.ones((2, 2))
        assert_allclose(gen_inverse_diag(gamma), np.diag(np.linalg.pinv(gamma)))
        assert_allclose(gen_inverse_diag(gamma), [0.25, 0.25])

    def test_null_space_coordinate_is_zero(self):
        result = gen_inverse_diag(np.diag([2.0, 0.0]))
        assert_allclose(result, [0.5, 0.0])

    def test_non_negative(self, rng):
        a = rng.standard_normal((6, 3))
        result = gen_inverse_diag(a @ a.T)
        assert np.all(result >= 0)


class TestCorrectDiag:
    """Tests for correct_diag."""

    def test_replaces_nonpositive_entries(self):
        gamma = np.diag([2.0, 4.0, 5.0])
        matrix = np.array([[-0.1, 0.0, 0.0],
                           [0.0, 2.0, 0.0],
                           [0.0, 0.0, 0.0]])
        out = correct_diag(gamma, matrix)
        assert_allclose(np.diag(out), [0.5, 2.0, 0.2])

    def test_zero_mode_leaves_negative_entries(self):
        gamma = np.diag([2.0, 4.0])
        matrix = np.diag([-0.1, 0.0])
        out = correct_diag(gamma, matrix, mode="zero")
        assert_allclose(np.diag(out), [-0.1, 0.25])

    def test_identity_on_positive_diagonal(self, covariance_matrix, precision_matrix):
        out = correct_diag(covariance_matrix, precision_matrix)
        assert_array_equal(out, precision_matrix)

    def test_input_not_modified(self):
        gamma = np.eye(2)
        matrix = np.diag([0.0, 1.0])
        correct_diag(gamma, matrix)
        assert matrix[0, 0] == 0.0

    def test_diagonal_strictly_positive_after_repair(self, rng):
        a = rng.standard_normal((5, 5))
        gamma = a @ a.T + np.eye(5)
        matrix = np.zeros((5, 5))
        out = correct_diag(gamma, matrix)
        assert np.all(np.diag(out) > 0)

    def test_null_space_fallback_warns(self):
        """A null-space coordinate falls back to 1 / max singular value."""
        gamma = np.diag([2.0, 0.0])
        with pytest.warns(NumericWarning):
            out = correct_diag(gamma, np.zeros((2, 2)))
        assert_allclose(np.diag(out), [0.5, 0.5])

    def test_shape_mismatch(self):
        with pytest.raises(DimensionError):
            correct_diag(np.eye(2), np.eye(3))

    def test_invalid_mode(self):
        with pytest.raises(ParameterError):
            correct_diag(np.eye(2), np.eye(2), mode="negative")

    def test_plain_repair_can_exceed_unit_correlation(self):
        matrix = np.array([[1.0, 2.0], [2.0, -1.0]])
        out = correct_diag(np.eye(2), matrix)
        assert abs(precision_to_partial_correlation(out)[0, 1]) > 1

    def test_bounded_repair_limits_partial_correlations(self):
        matrix = np.array([[1.0, 2.0], [2.0, -1.0]])
        out = correct_diag(np.eye(2), matrix, bound_partial_correlations=True)
        corr = precision_to_partial_correlation(out)
        assert np.all(np.abs(corr) <= 1 + 1e-9)
        assert np.all(np.diag(out) > 0)

    def test_bounded_repair_keeps_valid_matrix(self, covariance_matrix, precision_matrix):
        out = correct_diag(covariance_matrix, precision_matrix,
                           bound_partial_correlations=True)
        assert_allclose(out, precision_matrix)


class TestPartialCorrelation:
    """Tests for precision_to_partial_correlation."""

    def test_known_values(self):
        corr = precision_to_partial_correlation(np.array([[2.0, -1.0], [-1.0, 2.0]]))
        assert_allclose(corr, [[-1.0, 0.5], [0.5, -1.0]])

    def test_diagonal_is_exactly_minus_one(self, precision_matrix):
        corr = precision_to_partial_correlation(precision_matrix * 3.7)
        assert_array_equal(np.diag(corr), -np.ones(5))

    def test_nonpositive_diagonal_gives_nan_and_warning(self):
        matrix = np.array([[1.0, 0.2], [0.2, -1.0]])
        with pytest.warns(DataQualityWarning):
            corr = precision_to_partial_correlation(matrix)
        assert corr[0, 0] == -1.0
        assert np.all(np.isnan(corr[1, :]))
        assert np.all(np.isnan(corr[:, 1]))

    @given(arrays(dtype=np.float64, shape=(4, 4),
                  elements=st.floats(min_value=-3, max_value=3,
                                     allow_nan=False, allow_infinity=False)))
    @settings(max_examples=50, deadline=None)
    def test_positive_definite_input_is_bounded(self, a):
        """Property: a positive definite input yields symmetric |pc| <= 1."""
        corr = precision_to_partial_correlation(a @ a.T + np.eye(4))
        assert_allclose(corr, corr.T, atol=1e-12)
        assert np.all(np.abs(corr) <= 1 + 1e-12)
