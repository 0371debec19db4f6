# lrpc/models/precision/cross_validation.py
"""
Regularisation-path cross-validation.

Selects eta for the direct or the adaptive inverse estimator. The series is
cut into contiguous blocks; within each block the first half (in time
order) is the training sample and the remainder the validation sample. The
target matrix is re-estimated on both halves, every candidate on a
log-spaced path is estimated on the training target and scored against the
validation target with

    loss(D) = sum(s) - sum(log s) - p,   s = singular values of D Gamma_test

which is zero when D inverts Gamma_test. Losses accumulate over folds and
the first minimiser along the path is selected.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np
from scipy import linalg

from lrpc.core.config import get_config
from lrpc.core.exceptions import raise_data_error, raise_parameter_error
from lrpc.core.results import CrossValidationResult
from lrpc.core.types import (
    CovarianceMatrix, CVTarget, Matrix, SymmetrizeRule, Target, Vector
)
from lrpc.core.validation import (
    validate_choice, validate_panel, validate_positive_int, validate_square_matrix
)
from lrpc.models.precision.adaptive import adaptive_direct_inv_est, default_eta
from lrpc.models.precision.direct import SYMMETRIZE_RULES, direct_inv_est
from lrpc.models.precision.inputs import DynamicEstimator, FactorVARFit, sample_dynamic_estimate
from lrpc.models.precision.plots import plot_cv_curve
from lrpc.models.precision.pool import ColumnPool, column_pool
from lrpc.utils.covariance import default_bandwidth

# Set up module-level logger
logger = logging.getLogger("lrpc.models.precision.cross_validation")

CV_TARGETS = tuple(target.value for target in Target)


def eta_path(gamma: CovarianceMatrix, path_length: int,
             upper: Optional[float] = None) -> Vector:
    """
    Log-spaced candidate path from ``upper`` down to 1% of max|gamma|.

    Values are rounded to 10 decimal places and ordered from largest to
    smallest.

    Args:
        gamma: Target matrix
        path_length: Number of candidates
        upper: Largest candidate; defaults to max|gamma|

    Returns:
        Decreasing vector of candidates

    Examples:
        >>> import numpy as np
        >>> from lrpc.models.precision.cross_validation import eta_path
        >>> eta_path(np.eye(2), 3)
        array([1.  , 0.1 , 0.01])
    """
    gamma = validate_square_matrix(gamma, "gamma")
    path_length = validate_positive_int(path_length, "path_length")

    eta_max = float(np.max(np.abs(gamma)))
    if eta_max <= 0:
        raise_data_error(
            "Cannot build a regularisation path for a zero target matrix",
            data_name="gamma",
            issue="max |gamma| is zero"
        )
    if upper is None:
        upper = eta_max

    path = np.round(np.exp(np.linspace(np.log(upper), np.log(eta_max * 0.01), path_length)), 10)
    if np.any(path <= 0):
        raise_parameter_error(
            "Regularisation path contains values that round to zero",
            param_name="eta_path",
            param_value=path,
            constraint="All candidates must be positive"
        )
    return path


def cv_loss(estimate: Matrix, gamma_test: CovarianceMatrix,
            penalty: Optional[float] = None) -> float:
    """
    Stein-type loss of an inverse estimate against a validation target.

    Candidates whose product with the target is degenerate (a zero or
    non-finite singular value) score ``penalty`` instead of raising.

    Args:
        estimate: p x p inverse estimate D
        gamma_test: p x p validation target
        penalty: Loss for degenerate candidates; defaults to the configured
            ``numerical.degenerate_loss``

    Returns:
        sum(s) - sum(log s) - p for the singular values s of D Gamma_test
    """
    if penalty is None:
        penalty = get_config("numerical", "degenerate_loss", 1e12)

    product = np.asarray(estimate, dtype=float) @ np.asarray(gamma_test, dtype=float)
    if not np.all(np.isfinite(product)):
        return float(penalty)

    try:
        sv = linalg.svdvals(product)
    except linalg.LinAlgError:
        return float(penalty)

    if np.any(sv <= 0) or not np.all(np.isfinite(sv)):
        return float(penalty)

    loss = float(np.sum(sv) - np.sum(np.log(sv)) - product.shape[0])
    return loss if np.isfinite(loss) else float(penalty)


def fold_indices(n: int, n_folds: int) -> List[Tuple[np.ndarray, np.ndarray]]:
    """
    Contiguous training/validation index pairs.

    Time point t (1-based) belongs to block ceil(n_folds * t / n). Within a
    block the first ceil(len / 2) indices are training, the rest validation.

    Raises:
        DataError: If a block is too short to yield two non-empty halves
    """
    t = np.arange(1, n + 1)
    block = np.ceil(n_folds * t / n).astype(int)

    folds = []
    for fold in range(1, n_folds + 1):
        idx = np.flatnonzero(block == fold)
        n_train = int(np.ceil(len(idx) * 0.5))
        train, test = idx[:n_train], idx[n_train:]
        if len(train) < 2 or len(test) < 2:
            raise_data_error(
                f"Fold {fold} has too few observations ({len(idx)}) for {n_folds} folds",
                data_name="x",
                issue="insufficient length per fold",
                index=fold
            )
        folds.append((train, test))
    return folds


def fold_target(model: FactorVARFit, x: Matrix, target: CVTarget, q: int,
                kern_bw: int, re_estimator: DynamicEstimator) -> CovarianceMatrix:
    """
    Re-estimate the target matrix on a sub-series.

    'spec' uses the real zero-frequency spectral density. 'acv' uses the
    innovation autocovariance Gamma(0) - sum_l A_l Gamma(l) implied by the
    model's VAR coefficients.
    """
    if target == "spec":
        estimate = re_estimator(x, q, kern_bw, 0)
        return np.real(estimate.spectral_density[:, :, 0])

    estimate = re_estimator(x, q, kern_bw, model.lags)
    acv = estimate.autocovariance
    gamma = acv[:, :, 0].copy()
    for lag, block in enumerate(model.lag_blocks()):
        gamma -= block @ acv[:, :, lag + 1]
    return gamma


def direct_cv(
    model: FactorVARFit,
    xx: Matrix,
    target: CVTarget = "acv",
    symmetric: SymmetrizeRule = "min",
    n_folds: int = 1,
    path_length: int = 10,
    q: int = 0,
    kern_bw: Optional[int] = None,
    n_cores: Optional[int] = None,
    adaptive: bool = False,
    eta_adaptive: Optional[float] = None,
    do_plot: bool = False,
    re_estimator: Optional[DynamicEstimator] = None,
    pool: Optional[ColumnPool] = None
) -> CrossValidationResult:
    """
    Select eta by cross-validation.

    Args:
        model: Fitted model inputs
        xx: Demeaned p x n series
        target: 'acv' (innovation autocovariance) or 'spec' (zero-frequency
            spectral density)
        symmetric: Symmetrisation rule for the candidate estimates
        n_folds: Number of contiguous folds
        path_length: Number of candidates on the path
        q: Factor count passed to the re-estimator
        kern_bw: Kernel bandwidth; defaults to 4 * floor((n / log n)^(1/3))
        n_cores: Worker pool size when no pool is supplied
        adaptive: Score the adaptive estimator instead of the direct one
        eta_adaptive: Stage-1 regularisation for the adaptive estimator
        do_plot: Attach a figure of the loss curve
        re_estimator: Dynamic re-estimator; defaults to sample_dynamic_estimate
        pool: An open ColumnPool to reuse

    Returns:
        CrossValidationResult with the selected eta, the loss curve and the path

    Raises:
        ParameterError: For invalid fold count, path length, target or rule
        DataError: If a fold is too short
        ColumnSolveError: If any candidate estimate fails
    """
    xx = validate_panel(xx, min_length=4, data_name="xx")
    validate_choice(target, CV_TARGETS, "target")
    validate_choice(symmetric, SYMMETRIZE_RULES, "symmetric")
    n_folds = validate_positive_int(n_folds, "n_folds")
    path_length = validate_positive_int(path_length, "path_length")

    p, n = xx.shape
    if p != model.p:
        raise_parameter_error(
            f"Series has {p} variables but the model has {model.p}",
            param_name="xx",
            param_value=xx.shape,
            constraint=f"{model.p} rows"
        )
    if kern_bw is None:
        kern_bw = default_bandwidth(n)
    if re_estimator is None:
        re_estimator = sample_dynamic_estimate

    if target == "spec":
        gamma = model.zero_frequency_spectrum()
    else:
        gamma = model.innovation_autocovariance
    upper = None
    if adaptive:
        upper = min(float(np.max(np.abs(gamma))), default_eta(p, n))
    path = eta_path(gamma, path_length, upper)

    folds = fold_indices(n, n_folds)
    cv_error = np.zeros(path_length)

    with column_pool(n_cores, pool) as active:
        for fold, (train, test) in enumerate(folds):
            train_gamma = fold_target(model, xx[:, train], target, q, kern_bw, re_estimator)
            test_gamma = fold_target(model, xx[:, test], target, q, kern_bw, re_estimator)

            for k, eta in enumerate(path):
                if adaptive:
                    estimate = adaptive_direct_inv_est(
                        train_gamma, n, eta=eta, eta_adaptive=eta_adaptive,
                        symmetric=symmetric, pool=active
                    )
                else:
                    estimate = direct_inv_est(train_gamma, eta, symmetric=symmetric, pool=active)
                cv_error[k] += cv_loss(estimate.matrix, test_gamma)

            logger.debug(f"Fold {fold + 1}/{n_folds} scored {path_length} candidates")

    selected = int(np.argmin(cv_error))
    eta_min = float(path[selected])
    logger.info(f"Cross-validation selected eta={eta_min:.6g} "
                f"(position {selected + 1} of {path_length})")

    figure = plot_cv_curve(path, cv_error, eta_min) if do_plot else None
    return CrossValidationResult(
        eta=eta_min,
        cv_error=cv_error,
        eta_path=path,
        target=target,
        n_folds=n_folds,
        figure=figure
    )

