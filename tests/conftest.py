'''
Pytest configuration and fixtures for the LRPC Toolbox test suite.

This module provides the seeded random generator, small target matrices with
known inverses, simulated panels and fitted model inputs shared across the
test modules. Plots are rendered with the non-interactive Agg backend.
'''

from typing import Callable

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest
from hypothesis import strategies as st
from hypothesis.extra.numpy import arrays

from lrpc.core.config import reset_config
from lrpc.models.precision.inputs import FactorVARFit


# ---- Global state ----

@pytest.fixture(autouse=True)
def reset_lrpc_config():
    """Restore the default configuration after every test."""
    yield
    reset_config()


# ---- Basic Data Generation Fixtures ----

@pytest.fixture
def rng() -> np.random.Generator:
    """Provide a seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


def tridiagonal_precision(p: int, off_diag: float = 0.4) -> np.ndarray:
    """Tridiagonal precision matrix with unit diagonal."""
    precision = np.eye(p)
    idx = np.arange(p - 1)
    precision[idx, idx + 1] = off_diag
    precision[idx + 1, idx] = off_diag
    return precision


@pytest.fixture
def precision_matrix() -> np.ndarray:
    """Sparse 5 x 5 precision matrix with a chain structure."""
    return tridiagonal_precision(5, 0.3)


@pytest.fixture
def covariance_matrix(precision_matrix: np.ndarray) -> np.ndarray:
    """Covariance matrix whose inverse is the chain precision matrix."""
    return np.linalg.inv(precision_matrix)


@pytest.fixture
def gaussian_panel(rng: np.random.Generator) -> Callable[..., np.ndarray]:
    """Factory for p x n Gaussian panels with a tridiagonal precision."""

    def _make(p: int = 20, n: int = 200, off_diag: float = 0.4) -> np.ndarray:
        covariance = np.linalg.inv(tridiagonal_precision(p, off_diag))
        chol = np.linalg.cholesky(covariance)
        return chol @ rng.standard_normal((p, n))

    return _make


@pytest.fixture
def var1_panel(rng: np.random.Generator) -> np.ndarray:
    """Simulated 4-variable VAR(1) with A = 0.5 I and 1500 observations."""
    p, n, burn = 4, 1500, 100
    coefficient = 0.5 * np.eye(p)
    x = np.zeros((p, n + burn))
    shocks = rng.standard_normal((p, n + burn))
    for t in range(1, n + burn):
        x[:, t] = coefficient @ x[:, t - 1] + shocks[:, t]
    return x[:, burn:]


@pytest.fixture
def white_noise_model() -> Callable[[np.ndarray], FactorVARFit]:
    """Factory for inputs with a zero VAR block around a given target."""

    def _make(gamma: np.ndarray) -> FactorVARFit:
        p = gamma.shape[0]
        return FactorVARFit(
            innovation_autocovariance=gamma,
            var_coefficients=np.zeros((p, p)),
            spectral_density=gamma / (2 * np.pi),
            mean_vector=np.zeros(p),
        )

    return _make


# ---- Hypothesis strategies ----

def square_matrices(max_size: int = 6) -> st.SearchStrategy:
    """Finite square float matrices of moderate magnitude."""
    return st.integers(min_value=1, max_value=max_size).flatmap(
        lambda p: arrays(
            dtype=np.float64,
            shape=(p, p),
            elements=st.floats(min_value=-1e6, max_value=1e6,
                               allow_nan=False, allow_infinity=False)
        )
    )
