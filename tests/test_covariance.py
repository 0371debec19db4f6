'''
Tests for the second-moment estimators in lrpc.utils.covariance.
'''

import numpy as np
import pytest
from numpy.testing import assert_allclose

from lrpc.core.exceptions import DimensionError, ParameterError
from lrpc.utils.covariance import (
    autocovariance, bartlett_weights, default_bandwidth, spectral_density
)


class TestAutocovariance:
    """Tests for autocovariance."""

    def test_shape(self, rng):
        acv = autocovariance(rng.standard_normal((3, 100)), max_lag=4)
        assert acv.shape == (3, 3, 5)

    def test_lag_convention(self, rng):
        """Lag h holds (1/n) sum_t x_t x_{t+h}'."""
        x = rng.standard_normal((2, 50))
        n = x.shape[1]
        acv = autocovariance(x, max_lag=2)
        assert_allclose(acv[:, :, 0], x @ x.T / n)
        assert_allclose(acv[:, :, 1], x[:, :-1] @ x[:, 1:].T / n)
        assert_allclose(acv[:, :, 2], x[:, :-2] @ x[:, 2:].T / n)

    def test_lag_zero_is_symmetric(self, rng):
        acv = autocovariance(rng.standard_normal((4, 80)))
        assert_allclose(acv[:, :, 0], acv[:, :, 0].T)

    def test_demean(self, rng):
        x = rng.standard_normal((3, 60))
        centred = x - x.mean(axis=1, keepdims=True)
        assert_allclose(autocovariance(x + 5.0, max_lag=1, demean=True),
                        autocovariance(centred, max_lag=1), atol=1e-12)

    def test_lag_too_large(self, rng):
        with pytest.raises(ParameterError):
            autocovariance(rng.standard_normal((2, 10)), max_lag=10)

    def test_negative_lag(self, rng):
        with pytest.raises(ParameterError):
            autocovariance(rng.standard_normal((2, 10)), max_lag=-1)

    def test_one_dimensional_input(self, rng):
        with pytest.raises(DimensionError):
            autocovariance(rng.standard_normal(10))


class TestKernel:
    """Tests for the Bartlett kernel helpers."""

    def test_bartlett_weights(self):
        assert_allclose(bartlett_weights(3), [1.0, 0.75, 0.5, 0.25])

    def test_zero_bandwidth(self):
        assert_allclose(bartlett_weights(0), [1.0])

    def test_negative_bandwidth(self):
        with pytest.raises(ParameterError):
            bartlett_weights(-1)

    @pytest.mark.parametrize("n, expected", [(200, 12), (1000, 20), (50, 8)])
    def test_default_bandwidth(self, n, expected):
        assert default_bandwidth(n) == expected

    def test_default_bandwidth_requires_two_points(self):
        with pytest.raises(ParameterError):
            default_bandwidth(1)


class TestSpectralDensity:
    """Tests for spectral_density."""

    def test_shape_and_dtype(self, rng):
        spec = spectral_density(rng.standard_normal((3, 120)), bandwidth=6)
        assert spec.shape == (3, 3, 7)
        assert np.iscomplexobj(spec)

    def test_zero_frequency(self, rng):
        """Frequency zero is the real kernel-weighted long-run covariance."""
        x = rng.standard_normal((3, 150))
        bandwidth = 4
        spec = spectral_density(x, bandwidth)
        acv = autocovariance(x, max_lag=bandwidth)
        weights = bartlett_weights(bandwidth)

        expected = acv[:, :, 0].copy()
        for h in range(1, bandwidth + 1):
            expected += weights[h] * (acv[:, :, h] + acv[:, :, h].T)
        expected /= 2 * np.pi

        assert_allclose(spec[:, :, 0].imag, 0.0, atol=1e-12)
        assert_allclose(spec[:, :, 0].real, expected, atol=1e-12)

    def test_hermitian_at_every_frequency(self, rng):
        spec = spectral_density(rng.standard_normal((3, 100)), bandwidth=5)
        for k in range(spec.shape[2]):
            assert_allclose(spec[:, :, k], spec[:, :, k].conj().T, atol=1e-12)

    def test_bandwidth_capped_by_length(self, rng):
        spec = spectral_density(rng.standard_normal((2, 5)), bandwidth=10)
        assert spec.shape == (2, 2, 5)

    def test_precomputed_autocovariance(self, rng):
        x = rng.standard_normal((2, 80))
        acv = autocovariance(x, max_lag=6)
        assert_allclose(spectral_density(x, 4, acv=acv), spectral_density(x, 4))
