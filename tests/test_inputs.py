'''
Tests for the model inputs and the default dynamic re-estimator.
'''

from dataclasses import FrozenInstanceError

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from lrpc.core.exceptions import DimensionError, ParameterError
from lrpc.models.precision.inputs import FactorVARFit, sample_dynamic_estimate
from lrpc.utils.covariance import default_bandwidth


class TestFactorVARFit:
    """Tests for the FactorVARFit container."""

    def test_properties(self):
        a1, a2 = 0.3 * np.eye(3), 0.1 * np.ones((3, 3))
        model = FactorVARFit(
            innovation_autocovariance=np.eye(3),
            var_coefficients=np.hstack([a1, a2]),
            spectral_density=np.eye(3),
            mean_vector=np.zeros(3),
            factor_count=1,
        )
        assert model.p == 3
        assert model.lags == 2
        assert_array_equal(model.lag_blocks()[1], a2)
        assert_allclose(model.var_transform(), np.eye(3) - a1 - a2)

    def test_matrix_spectrum_is_frequency_zero(self):
        model = FactorVARFit(np.eye(2), np.zeros((2, 2)), 2.0 * np.eye(2), np.zeros(2))
        assert model.spectral_density.shape == (2, 2, 1)
        assert_array_equal(model.zero_frequency_spectrum(), 2.0 * np.eye(2))

    def test_fields_are_read_only(self):
        model = FactorVARFit(np.eye(2), np.zeros((2, 2)), np.eye(2), np.zeros(2))
        with pytest.raises(ValueError):
            model.innovation_autocovariance[0, 0] = 5.0
        with pytest.raises(FrozenInstanceError):
            model.factor_count = 3

    def test_coefficient_shape(self):
        with pytest.raises(DimensionError):
            FactorVARFit(np.eye(3), np.zeros((3, 4)), np.eye(3), np.zeros(3))

    def test_spectrum_shape(self):
        with pytest.raises(DimensionError):
            FactorVARFit(np.eye(3), np.zeros((3, 3)), np.eye(2), np.zeros(3))

    def test_mean_length(self):
        with pytest.raises(DimensionError):
            FactorVARFit(np.eye(3), np.zeros((3, 3)), np.eye(3), np.zeros(2))

    @pytest.mark.parametrize("factor_count", [-1, 1.5, True])
    def test_invalid_factor_count(self, factor_count):
        with pytest.raises(ParameterError):
            FactorVARFit(np.eye(2), np.zeros((2, 2)), np.eye(2), np.zeros(2),
                         factor_count=factor_count)


class TestFromVAR:
    """Tests for FactorVARFit.from_var."""

    def test_recovers_coefficients(self, var1_panel):
        model = FactorVARFit.from_var(var1_panel, lags=1)
        assert model.lags == 1
        assert_allclose(model.var_coefficients, 0.5 * np.eye(4), atol=0.1)
        assert_allclose(model.innovation_autocovariance, np.eye(4), atol=0.15)
        assert model.factor_count == 0
        assert model.kernel_bandwidth == default_bandwidth(var1_panel.shape[1])

    def test_target_is_symmetric(self, var1_panel):
        gamma = FactorVARFit.from_var(var1_panel, lags=2).innovation_autocovariance
        assert_array_equal(gamma, gamma.T)

    def test_mean_vector(self, var1_panel):
        model = FactorVARFit.from_var(var1_panel + 3.0, lags=1)
        assert_allclose(model.mean_vector, var1_panel.mean(axis=1) + 3.0)

    def test_higher_order_shape(self, var1_panel):
        model = FactorVARFit.from_var(var1_panel, lags=2, kern_bw=6)
        assert model.var_coefficients.shape == (4, 8)
        assert model.spectral_density.shape == (4, 4, 7)

    def test_invalid_lags(self, var1_panel):
        with pytest.raises(ParameterError):
            FactorVARFit.from_var(var1_panel, lags=0)


class TestSampleDynamicEstimate:
    """Tests for sample_dynamic_estimate."""

    def test_shapes(self, rng):
        estimate = sample_dynamic_estimate(rng.standard_normal((3, 100)), kern_bw=5, max_lag=2)
        assert estimate.autocovariance.shape == (3, 3, 3)
        assert estimate.spectral_density.shape == (3, 3, 6)

    def test_demeans(self, rng):
        x = rng.standard_normal((2, 200))
        shifted = sample_dynamic_estimate(x + 10.0, kern_bw=4)
        plain = sample_dynamic_estimate(x, kern_bw=4)
        assert_allclose(shifted.autocovariance, plain.autocovariance, atol=1e-10)

    def test_removes_common_component(self, rng):
        p, n = 6, 400
        factor = rng.standard_normal(n)
        x = np.outer(np.ones(p), factor) + 0.1 * rng.standard_normal((p, n))

        before = sample_dynamic_estimate(x, q=0, kern_bw=4).autocovariance[:, :, 0]
        after = sample_dynamic_estimate(x, q=1, kern_bw=4).autocovariance[:, :, 0]
        assert np.linalg.norm(after) < 0.1 * np.linalg.norm(before)

    def test_factor_count_too_large(self, rng):
        with pytest.raises(ParameterError):
            sample_dynamic_estimate(rng.standard_normal((3, 50)), q=3)
