# lrpc/utils/covariance.py

"""
Autocovariance and Spectral Density Estimation Module

This module provides the sample second-moment estimators used to build
cross-validation targets: lagged sample autocovariances of a multivariate
series and a Bartlett-kernel estimate of its spectral density on a grid of
Fourier frequencies.

Series are stored with one row per variable (p x n). The autocovariance
convention is autocovariance[:, :, h] = (1/n) sum_t x_t x_{t+h}'.

Functions:
    autocovariance: Sample autocovariances up to a maximum lag
    bartlett_weights: Bartlett kernel weights for a bandwidth
    spectral_density: Kernel-smoothed spectral density estimate
    default_bandwidth: Default kernel bandwidth for a sample size
"""

import logging
from typing import Optional

import numpy as np
from numba import jit

from lrpc.core.exceptions import raise_dimension_error, raise_parameter_error
from lrpc.core.types import Matrix, Vector, Tensor3D

# Set up module-level logger
logger = logging.getLogger("lrpc.utils.covariance")


@jit(nopython=True, cache=True)
def _autocovariance_core(x: np.ndarray, max_lag: int) -> np.ndarray:
    """
    Numba-accelerated lagged cross-products.

    Args:
        x: Demeaned data matrix (p x n)
        max_lag: Largest lag to compute

    Returns:
        p x p x (max_lag + 1) array of autocovariances
    """
    p, n = x.shape
    acv = np.zeros((p, p, max_lag + 1))

    for h in range(max_lag + 1):
        for t in range(n - h):
            for j in range(p):
                xj = x[j, t]
                for k in range(p):
                    acv[j, k, h] += xj * x[k, t + h]
        for j in range(p):
            for k in range(p):
                acv[j, k, h] /= n

    return acv


def autocovariance(x: Matrix, max_lag: int = 0, demean: bool = False) -> Tensor3D:
    """
    Compute sample autocovariance matrices of a multivariate series.

    Args:
        x: Data matrix (p x n), one row per variable
        max_lag: Largest lag h; lags 0..max_lag are returned
        demean: Whether to subtract the row means first

    Returns:
        p x p x (max_lag + 1) array with autocovariance[:, :, h] equal to
        (1/n) sum_t x_t x_{t+h}'

    Raises:
        DimensionError: If x is not a 2D array
        ParameterError: If max_lag is negative or not smaller than n

    Examples:
        >>> import numpy as np
        >>> from lrpc.utils.covariance import autocovariance
        >>> rng = np.random.default_rng(1)
        >>> acv = autocovariance(rng.standard_normal((3, 200)), max_lag=2)
        >>> acv.shape
        (3, 3, 3)
    """
    x = np.asarray(x, dtype=float)

    if x.ndim != 2:
        raise_dimension_error(
            "Input must be a 2D array",
            array_name="x",
            expected_shape="(p, n)",
            actual_shape=x.shape
        )

    n = x.shape[1]
    if max_lag < 0 or max_lag >= n:
        raise_parameter_error(
            f"max_lag must lie in [0, {n - 1}], got {max_lag}",
            param_name="max_lag",
            param_value=max_lag,
            constraint=f"0 <= max_lag < n ({n})"
        )

    if demean:
        x = x - x.mean(axis=1, keepdims=True)

    return _autocovariance_core(np.ascontiguousarray(x), int(max_lag))


def bartlett_weights(bandwidth: int) -> Vector:
    """
    Bartlett kernel weights w(h) = 1 - h / (bandwidth + 1) for h = 0..bandwidth.

    Examples:
        >>> from lrpc.utils.covariance import bartlett_weights
        >>> bartlett_weights(3)
        array([1.  , 0.75, 0.5 , 0.25])
    """
    if bandwidth < 0:
        raise_parameter_error(
            f"bandwidth must be non-negative, got {bandwidth}",
            param_name="bandwidth",
            param_value=bandwidth,
            constraint="Must be non-negative"
        )
    lags = np.arange(bandwidth + 1)
    return 1.0 - lags / (bandwidth + 1)


def default_bandwidth(n: int) -> int:
    """Default kernel bandwidth 4 * floor((n / log n)^(1/3))."""
    if n < 2:
        raise_parameter_error(
            f"Sample size must be at least 2, got {n}",
            param_name="n",
            param_value=n,
            constraint="n >= 2"
        )
    return int(4 * np.floor((n / np.log(n)) ** (1 / 3)))


def spectral_density(x: Matrix, bandwidth: int,
                     acv: Optional[Tensor3D] = None) -> Tensor3D:
    """
    Bartlett-kernel estimate of the spectral density matrix.

    The estimate is evaluated on the Fourier frequencies
    omega_k = 2 pi k / (2 * bandwidth + 1), k = 0..bandwidth, as

        f(omega) = (1 / 2pi) sum_{|h| <= bandwidth} w(h) Gamma(h) exp(-i h omega)

    with Gamma(-h) = Gamma(h)'. The first frequency slice is the zero-frequency
    (long-run) spectral density, which is real and symmetric.

    Args:
        x: Demeaned data matrix (p x n)
        bandwidth: Kernel bandwidth, capped at n - 1
        acv: Precomputed autocovariances covering at least ``bandwidth`` lags

    Returns:
        Complex p x p x (bandwidth + 1) array, frequency zero first
    """
    x = np.asarray(x, dtype=float)
    n = x.shape[1]
    bandwidth = int(min(bandwidth, n - 1))

    if acv is None or acv.shape[2] < bandwidth + 1:
        acv = autocovariance(x, max_lag=bandwidth)

    weights = bartlett_weights(bandwidth)
    freqs = 2 * np.pi * np.arange(bandwidth + 1) / (2 * bandwidth + 1)
    p = x.shape[0]

    spec = np.zeros((p, p, bandwidth + 1), dtype=complex)
    for k, omega in enumerate(freqs):
        total = acv[:, :, 0].astype(complex)
        for h in range(1, bandwidth + 1):
            phase = np.exp(-1j * h * omega)
            total += weights[h] * (acv[:, :, h] * phase + acv[:, :, h].T * np.conj(phase))
        spec[:, :, k] = total / (2 * np.pi)

    logger.debug(f"Spectral density estimated with bandwidth {bandwidth}")
    return spec
