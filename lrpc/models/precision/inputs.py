# lrpc/models/precision/inputs.py
'''
Inputs consumed by the long-run partial-correlation estimator.

The fitted factor-adjusted VAR model is produced by an upstream stage and is
passed to the estimator as an immutable FactorVARFit. During cross-validation
the estimator re-estimates second moments on held-out halves of the series
through a dynamic re-estimator; any callable matching DynamicEstimator can be
supplied, and sample_dynamic_estimate is used when none is.

Classes:
    FactorVARFit: Immutable bundle of the fitted model quantities
    DynamicEstimate: Spectral density and autocovariances of a sub-series
    DynamicEstimator: Protocol for dynamic re-estimators

Functions:
    sample_dynamic_estimate: Default re-estimator
'''

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

import numpy as np
from scipy import linalg
from statsmodels.tsa.api import VAR as StatsmodelsVAR

from lrpc.core.exceptions import EstimationError, raise_dimension_error, raise_parameter_error
from lrpc.core.types import (
    CoefficientStack, CovarianceMatrix, Matrix, Tensor3D, TimeSeriesPanel, Vector
)
from lrpc.core.validation import (
    validate_panel, validate_positive_int, validate_square_matrix, validate_vector
)
from lrpc.utils.covariance import autocovariance, default_bandwidth, spectral_density
from lrpc.utils.matrix_ops import make_symmetric

# Set up module-level logger
logger = logging.getLogger("lrpc.models.precision.inputs")


def _readonly(array: np.ndarray) -> np.ndarray:
    frozen = np.array(array, copy=True)
    frozen.setflags(write=False)
    return frozen


@dataclass(frozen=True)
class DynamicEstimate:
    """
    Second moments of a (sub-)series.

    Attributes:
        spectral_density: p x p x H spectral density, frequency zero first
        autocovariance: p x p x (max_lag + 1) autocovariances
    """
    spectral_density: Tensor3D
    autocovariance: Tensor3D


class DynamicEstimator(Protocol):
    """Protocol for re-estimating second moments on a sub-series.

    Implementations receive a demeaned p x m sub-series, the factor count,
    the kernel bandwidth and the largest autocovariance lag required.
    """

    def __call__(self, x: Matrix, q: int, kern_bw: int,
                 max_lag: int) -> DynamicEstimate:
        ...


def _remove_factors(x: Matrix, q: int) -> Matrix:
    """Project out the q leading principal components of the rows of x."""
    n = x.shape[1]
    eigenvalues, eigenvectors = linalg.eigh(x @ x.T / n)
    idx = np.argsort(eigenvalues)[::-1][:q]
    loadings = eigenvectors[:, idx]
    return x - loadings @ (loadings.T @ x)


def sample_dynamic_estimate(x: Matrix, q: int = 0, kern_bw: Optional[int] = None,
                            max_lag: int = 0) -> DynamicEstimate:
    """
    Default dynamic re-estimator.

    Demeans the series, removes ``q`` common components by projecting out
    the leading principal components, and returns the sample
    autocovariances up to ``max_lag`` together with a Bartlett-kernel
    spectral density estimate.

    Args:
        x: p x m series, one row per variable
        q: Number of common components to remove
        kern_bw: Kernel bandwidth; defaults to 4 * floor((m / log m)^(1/3))
        max_lag: Largest autocovariance lag returned

    Returns:
        DynamicEstimate

    Raises:
        ParameterError: If q is not smaller than p or max_lag >= m
    """
    x = np.asarray(x, dtype=float)
    p, m = x.shape
    if q < 0 or q >= p:
        raise_parameter_error(
            f"Factor count must lie in [0, {p - 1}], got {q}",
            param_name="q",
            param_value=q,
            constraint=f"0 <= q < p ({p})"
        )
    if kern_bw is None:
        kern_bw = default_bandwidth(m)

    xx = x - x.mean(axis=1, keepdims=True)
    if q > 0:
        xx = _remove_factors(xx, q)

    acv = autocovariance(xx, max_lag=max_lag)
    spec = spectral_density(xx, kern_bw)
    return DynamicEstimate(spectral_density=spec, autocovariance=acv)


@dataclass(frozen=True)
class FactorVARFit:
    """
    Fitted factor-adjusted VAR quantities consumed by the estimator.

    Attributes:
        innovation_autocovariance: p x p innovation covariance target Gamma
        var_coefficients: p x (d*p) horizontal stack [A_1 | ... | A_d]
        spectral_density: p x p x H idiosyncratic spectral density,
            frequency zero first (a p x p matrix is taken as frequency zero)
        mean_vector: Length-p mean used to demean the raw series
        factor_count: Number of common factors q
        kernel_bandwidth: Kernel bandwidth used upstream (None for the default)
    """
    innovation_autocovariance: CovarianceMatrix
    var_coefficients: CoefficientStack
    spectral_density: Tensor3D
    mean_vector: Vector
    factor_count: int = 0
    kernel_bandwidth: Optional[int] = None

    def __post_init__(self) -> None:
        gamma = validate_square_matrix(self.innovation_autocovariance,
                                       "innovation_autocovariance")
        p = gamma.shape[0]

        coefficients = np.asarray(self.var_coefficients, dtype=float)
        if (coefficients.ndim != 2 or coefficients.shape[0] != p
                or coefficients.shape[1] == 0 or coefficients.shape[1] % p != 0):
            raise_dimension_error(
                "var_coefficients must stack p x p lag blocks horizontally",
                array_name="var_coefficients",
                expected_shape=f"({p}, d * {p})",
                actual_shape=coefficients.shape
            )

        spec = np.asarray(self.spectral_density)
        if spec.ndim == 2:
            spec = spec[:, :, np.newaxis]
        if spec.ndim != 3 or spec.shape[:2] != (p, p) or spec.shape[2] == 0:
            raise_dimension_error(
                "spectral_density must be a p x p x H array",
                array_name="spectral_density",
                expected_shape=f"({p}, {p}, H)",
                actual_shape=spec.shape
            )

        mean = validate_vector(self.mean_vector, p, "mean_vector")

        if (isinstance(self.factor_count, bool) or not isinstance(self.factor_count, (int, np.integer))
                or self.factor_count < 0):
            raise_parameter_error(
                f"factor_count must be a non-negative integer, got {self.factor_count!r}",
                param_name="factor_count",
                param_value=self.factor_count,
                constraint="Non-negative integer"
            )
        if self.kernel_bandwidth is not None:
            validate_positive_int(self.kernel_bandwidth, "kernel_bandwidth")

        object.__setattr__(self, "innovation_autocovariance", _readonly(gamma))
        object.__setattr__(self, "var_coefficients", _readonly(coefficients))
        object.__setattr__(self, "spectral_density", _readonly(spec))
        object.__setattr__(self, "mean_vector", _readonly(mean))
        object.__setattr__(self, "factor_count", int(self.factor_count))

    @property
    def p(self) -> int:
        """Number of variables."""
        return self.innovation_autocovariance.shape[0]

    @property
    def lags(self) -> int:
        """VAR order d."""
        return self.var_coefficients.shape[1] // self.p

    def lag_blocks(self) -> List[Matrix]:
        """Coefficient blocks [A_1, ..., A_d]."""
        p = self.p
        return [self.var_coefficients[:, l * p:(l + 1) * p] for l in range(self.lags)]

    def var_transform(self) -> Matrix:
        """A(1) = I - sum_l A_l."""
        return np.eye(self.p) - sum(self.lag_blocks())

    def zero_frequency_spectrum(self) -> Matrix:
        """Real part of the zero-frequency spectral density."""
        return np.real(self.spectral_density[:, :, 0])

    @classmethod
    def from_var(cls, x: TimeSeriesPanel, lags: int = 1,
                 kern_bw: Optional[int] = None) -> "FactorVARFit":
        """
        Build the inputs from a least-squares VAR fit without factor adjustment.

        The coefficient blocks come from statsmodels' VAR estimated on the
        demeaned series; the innovation target is Gamma(0) - sum_l A_l Gamma(l)
        (symmetrised) and the spectral density is the Bartlett-kernel
        estimate of the demeaned series.

        Args:
            x: p x n series, one row per variable
            lags: VAR order d
            kern_bw: Kernel bandwidth; defaults to 4 * floor((n / log n)^(1/3))

        Returns:
            FactorVARFit with factor_count 0

        Raises:
            EstimationError: If the VAR fit fails
        """
        lags = validate_positive_int(lags, "lags")
        values = validate_panel(x, min_length=lags + 2)
        n = values.shape[1]
        if kern_bw is None:
            kern_bw = default_bandwidth(n)

        mean = values.mean(axis=1)
        xx = values - mean[:, np.newaxis]

        try:
            sm_result = StatsmodelsVAR(xx.T).fit(maxlags=lags, trend="n")
        except (ValueError, np.linalg.LinAlgError) as e:
            raise EstimationError(
                "VAR estimation failed",
                model_type="VAR",
                estimation_method="OLS",
                issue=str(e)
            ) from e

        blocks = [sm_result.coefs[lag] for lag in range(lags)]
        acv = autocovariance(xx, max_lag=lags)
        gamma = acv[:, :, 0] - sum(a @ acv[:, :, l + 1] for l, a in enumerate(blocks))

        logger.debug(f"Fitted VAR({lags}) to {values.shape[0]} series of length {n}")
        return cls(
            innovation_autocovariance=make_symmetric(gamma, "avg"),
            var_coefficients=np.hstack(blocks),
            spectral_density=spectral_density(xx, kern_bw),
            mean_vector=mean,
            factor_count=0,
            kernel_bandwidth=kern_bw,
        )
