# lrpc/models/precision/lrpc.py
"""
Long-run partial correlations of factor-adjusted VAR processes.

Combines a CLIME-type estimate of the inverse innovation covariance Delta
with the VAR coefficients of a fitted model. With A(1) = I - sum_l A_l, the
inverse of the long-run covariance is

    Omega = 2 pi A(1)' Delta A(1)

and both Delta and Omega are normalised into partial-correlation form,
-M_ij / sqrt(M_ii M_jj).

References:
    Barigozzi, M., Cho, H. & Owens, D. (2022) FNETS: Factor-adjusted network
    estimation and forecasting for high-dimensional time series.
    Cai, T. T., Liu, W. & Zhou, H. H. (2016) Estimating sparse precision
    matrix: Optimal rates of convergence and adaptive estimation. The Annals
    of Statistics, 44(2), 455-488.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from lrpc.core.config import get_config
from lrpc.core.exceptions import raise_dimension_error
from lrpc.core.results import CrossValidationResult, LRPCResult
from lrpc.core.types import TimeSeriesPanel
from lrpc.core.validation import validate_panel, validate_positive, validate_positive_int
from lrpc.models.precision.adaptive import adaptive_direct_inv_est, default_eta
from lrpc.models.precision.cross_validation import direct_cv
from lrpc.models.precision.direct import direct_inv_est
from lrpc.models.precision.inputs import DynamicEstimator, FactorVARFit
from lrpc.models.precision.pool import ColumnPool
from lrpc.models.precision.threshold import ThresholdOperator, threshold
from lrpc.utils.matrix_ops import correct_diag, precision_to_partial_correlation

# Set up module-level logger
logger = logging.getLogger("lrpc.models.precision.lrpc")


@dataclass
class TuningArgs:
    """
    Cross-validation settings for selecting eta.

    Attributes:
        n_folds: Number of folds (None uses ``estimation.n_folds``)
        path_length: Number of candidates (None uses ``estimation.path_length``)
        do_plot: Attach the CV curve and, when thresholding, the threshold plots
    """
    n_folds: Optional[int] = None
    path_length: Optional[int] = None
    do_plot: bool = False

    def __post_init__(self) -> None:
        if self.n_folds is None:
            self.n_folds = get_config("estimation", "n_folds", 1)
        if self.path_length is None:
            self.path_length = get_config("estimation", "path_length", 10)
        self.n_folds = validate_positive_int(self.n_folds, "n_folds")
        self.path_length = validate_positive_int(self.path_length, "path_length")


def par_lrpc(
    model: FactorVARFit,
    x: TimeSeriesPanel,
    eta: Optional[float] = None,
    tuning: Optional[TuningArgs] = None,
    adaptive: Optional[bool] = None,
    eta_adaptive: Optional[float] = None,
    do_correct: Optional[bool] = None,
    do_threshold: Optional[bool] = None,
    n_cores: Optional[int] = None,
    re_estimator: Optional[DynamicEstimator] = None,
    threshold_fn: Optional[ThresholdOperator] = None,
    bound_partial_correlations: bool = False
) -> LRPCResult:
    """
    Estimate (long-run) partial correlations from a fitted factor-adjusted VAR.

    Args:
        model: Fitted model inputs
        x: Raw p x n series, one row per variable
        eta: Regularisation value; selected by cross-validation when None
        tuning: Cross-validation settings
        adaptive: Use the two-stage adaptive estimator
        eta_adaptive: Stage-1 regularisation; defaults to 2 * sqrt(log p / n)
        do_correct: Repair degenerate diagonals of Delta and Omega
        do_threshold: Threshold Delta and Omega
        n_cores: Worker pool size
        re_estimator: Dynamic re-estimator used by cross-validation
        threshold_fn: Threshold operator; defaults to ``threshold``
        bound_partial_correlations: Run the bounded diagonal repair

    Returns:
        LRPCResult with Delta, Omega, pc, lrpc, eta and the adaptive flag,
        plus both threshold outputs when ``do_threshold`` is set

    Raises:
        ParameterError: For invalid tuning values, eta or worker count; raised
            before any linear program is solved
        DimensionError: If x does not match the model
        ColumnSolveError: If any column LP fails

    Examples:
        >>> from lrpc import FactorVARFit, par_lrpc
        >>> model = FactorVARFit.from_var(x, lags=1)
        >>> result = par_lrpc(model, x, n_cores=1)
        >>> result.lrpc.shape == (x.shape[0], x.shape[0])
        True
    """
    values = validate_panel(x, min_length=4)
    p, n = values.shape
    if p != model.p:
        raise_dimension_error(
            f"x has {p} variables but the model has {model.p}",
            array_name="x",
            expected_shape=f"({model.p}, n)",
            actual_shape=values.shape
        )

    if tuning is None:
        tuning = TuningArgs()
    if adaptive is None:
        adaptive = get_config("estimation", "adaptive", False)
    if do_correct is None:
        do_correct = get_config("estimation", "do_correct", True)
    if do_threshold is None:
        do_threshold = get_config("estimation", "do_threshold", False)
    if eta is not None:
        eta = validate_positive(eta, "eta")
    if eta_adaptive is not None:
        eta_adaptive = validate_positive(eta_adaptive, "eta_adaptive")
    if threshold_fn is None:
        threshold_fn = threshold
    symmetric = get_config("estimation", "symmetric", "min")

    xx = values - model.mean_vector[:, np.newaxis]
    gamma = model.innovation_autocovariance
    var_transform = model.var_transform()

    cv: Optional[CrossValidationResult] = None
    with ColumnPool(n_workers=n_cores) as pool:
        if eta is None:
            cv = direct_cv(
                model,
                xx,
                target="acv",
                symmetric=symmetric,
                n_folds=tuning.n_folds,
                path_length=tuning.path_length,
                q=model.factor_count,
                kern_bw=model.kernel_bandwidth,
                adaptive=adaptive,
                eta_adaptive=eta_adaptive,
                do_plot=tuning.do_plot,
                re_estimator=re_estimator,
                pool=pool
            )
            eta = cv.eta

        if adaptive:
            if eta_adaptive is None:
                eta_adaptive = default_eta(p, n)
            estimate = adaptive_direct_inv_est(
                gamma, n, eta=eta, eta_adaptive=eta_adaptive, symmetric=symmetric,
                do_correct=do_correct, pool=pool,
                bound_partial_correlations=bound_partial_correlations
            )
        else:
            estimate = direct_inv_est(
                gamma, eta, symmetric=symmetric, do_correct=do_correct, pool=pool,
                bound_partial_correlations=bound_partial_correlations
            )

    delta = estimate.matrix
    delta_threshold = omega_threshold = None
    if do_threshold:
        delta_threshold = threshold_fn(delta, do_plot=tuning.do_plot)
        delta = delta_threshold.thr_mat

    omega = 2 * np.pi * var_transform.T @ delta @ var_transform
    if do_correct:
        omega = correct_diag(model.zero_frequency_spectrum(), omega,
                             bound_partial_correlations=bound_partial_correlations)
    if do_threshold:
        omega_threshold = threshold_fn(omega, do_plot=tuning.do_plot)
        omega = omega_threshold.thr_mat

    pc = precision_to_partial_correlation(delta)
    lrpc = precision_to_partial_correlation(omega)

    logger.info(f"Estimated (long-run) partial correlations for p={p}, eta={eta:.6g}")
    return LRPCResult(
        delta=delta,
        omega=omega,
        pc=pc,
        lrpc=lrpc,
        eta=float(eta),
        adaptive=bool(adaptive),
        cv=cv,
        delta_threshold=delta_threshold,
        omega_threshold=omega_threshold
    )
