# lrpc/utils/matrix_ops.py
"""
Matrix Repair Utilities

This module provides the post-processing applied to every inverse estimate:
symmetrisation of column-wise estimates, replacement of degenerate diagonal
entries by the diagonal of a pseudo-inverse, and normalisation of a precision
matrix into partial-correlation form.

Independent column-wise linear programs do not produce a symmetric matrix and
may leave zero or negative diagonal entries, which would make the division by
the square root of the diagonal undefined. All functions here are pure: they
never modify their inputs and are deterministic.

Functions:
    make_symmetric: Combine a matrix with its transpose under a selectable rule
    gen_inverse_diag: Diagonal of the Moore-Penrose pseudo-inverse via SVD
    correct_diag: Replace degenerate diagonal entries of an estimate
    precision_to_partial_correlation: Normalise a precision matrix
"""

import logging
from typing import List, Optional

import numpy as np
from scipy import linalg

from lrpc.core.config import get_config
from lrpc.core.exceptions import (
    raise_dimension_error, raise_parameter_error, warn_numeric, warn_data_quality
)
from lrpc.core.types import (
    Matrix, Vector, CovarianceMatrix, CorrelationMatrix, PrecisionMatrix,
    SymmetrizeRule, RepairMode
)
from lrpc.core.validation import validate_square_matrix

# Set up module-level logger
logger = logging.getLogger("lrpc.utils.matrix_ops")

# Slack allowed on |partial correlation| <= 1 by the bounded repair
_CORRELATION_SLACK = 1e-10


def make_symmetric(matrix: Matrix, rule: SymmetrizeRule = "min") -> Matrix:
    """
    Combine a matrix with its transpose.

    Rules:
        - 'min': keep, for every pair (i, j), the entry of smaller magnitude
          with its sign; a tie between entries of opposite sign resolves to
          their mean (zero), so the output is exactly symmetric
        - 'max': keep the entry of larger magnitude, ties resolved the same way
        - 'avg': elementwise mean of the matrix and its transpose
        - 'none': return an unchanged copy

    Args:
        matrix: Square matrix assembled column by column
        rule: Symmetrisation rule

    Returns:
        Symmetric matrix (a copy; the input is not modified)

    Raises:
        DimensionError: If the input matrix is not square
        ParameterError: If the rule is unknown

    Examples:
        >>> import numpy as np
        >>> from lrpc.utils.matrix_ops import make_symmetric
        >>> D = np.array([[1.0, 0.5], [-0.2, 2.0]])
        >>> make_symmetric(D, "min")
        array([[ 1. , -0.2],
               [-0.2,  2. ]])
    """
    matrix = validate_square_matrix(matrix, "matrix", require_finite=False)
    transpose = matrix.T

    if rule == "none":
        return matrix.copy()
    if rule == "avg":
        return (matrix + transpose) / 2

    if rule not in ("min", "max"):
        raise_parameter_error(
            f"Invalid symmetrisation rule: {rule!r}",
            param_name="symmetric",
            param_value=rule,
            constraint="Must be one of ['min', 'max', 'avg', 'none']"
        )

    own = np.abs(matrix)
    other = np.abs(transpose)
    keep_own = own < other if rule == "min" else own > other
    keep_other = own > other if rule == "min" else own < other

    out = (matrix + transpose) / 2
    out[keep_own] = matrix[keep_own]
    out[keep_other] = transpose[keep_other]
    return out


def gen_inverse_diag(gamma: CovarianceMatrix, rtol: Optional[float] = None) -> Vector:
    """
    Diagonal of the Moore-Penrose pseudo-inverse of a covariance-like matrix.

    Computes diag(U diag(1/s) U') from the singular value decomposition
    gamma = U diag(s) V', where singular values at or below the cutoff
    contribute zero.

    Args:
        gamma: Symmetric p x p target matrix
        rtol: Relative cutoff on the singular values; None uses
            max(s) * p * machine epsilon (or the configured value)

    Returns:
        Length-p vector of non-negative values
    """
    gamma = validate_square_matrix(gamma, "gamma")
    u, s, _ = linalg.svd(gamma)

    if rtol is None:
        rtol = get_config("numerical", "pinv_rtol")
    if rtol is None:
        rtol = gamma.shape[0] * np.finfo(float).eps

    s_max = s.max() if s.size else 0.0
    inv_s = np.zeros_like(s)
    keep = s > s_max * rtol
    inv_s[keep] = 1.0 / s[keep]

    return (u ** 2) @ inv_s


def _fallback_diagonal(gamma: CovarianceMatrix, rtol: Optional[float]) -> Vector:
    """Pseudo-inverse diagonal with null-space coordinates floored at 1 / max(s)."""
    fallback = gen_inverse_diag(gamma, rtol)
    s_max = linalg.svdvals(gamma).max()

    degenerate = fallback <= 0
    if degenerate.any() and s_max > 0:
        warn_numeric(
            "Pseudo-inverse diagonal is zero for some coordinates; using 1 / max singular value",
            operation="correct_diag",
            issue="target has a null-space coordinate",
            value=np.flatnonzero(degenerate).tolist()
        )
        fallback[degenerate] = 1.0 / s_max
    elif degenerate.any():
        warn_numeric(
            "Target matrix is zero; diagonal cannot be repaired",
            operation="correct_diag",
            issue="all singular values are zero"
        )
    return fallback


def correct_diag(
    gamma: CovarianceMatrix,
    matrix: PrecisionMatrix,
    mode: RepairMode = "nonpositive",
    bound_partial_correlations: bool = False,
    rtol: Optional[float] = None,
    max_iter: Optional[int] = None
) -> PrecisionMatrix:
    """
    Replace degenerate diagonal entries of an inverse estimate.

    Offending diagonal entries are replaced by the corresponding entries of
    the pseudo-inverse diagonal of the (ridge-free) target gamma. Entries that
    are healthy are left untouched, so repairing a matrix with a strictly
    positive diagonal is the identity.

    The replacement alone does not guarantee |partial correlation| <= 1.
    With ``bound_partial_correlations=True`` the repaired entries, together
    with any entry whose row induces a partial correlation above one, are
    raised iteratively to max(fallback, D_ij^2 / D_jj) until every partial
    correlation of the repaired matrix is bounded by one in magnitude.

    Args:
        gamma: Target matrix the estimate inverts
        matrix: Symmetrised inverse estimate
        mode: 'nonpositive' replaces entries <= 0 (direct estimator),
            'zero' replaces exactly-zero entries (adaptive estimator)
        bound_partial_correlations: Run the iterative bounded repair
        rtol: Singular value cutoff passed to gen_inverse_diag
        max_iter: Iteration cap for the bounded repair

    Returns:
        Repaired copy of matrix

    Raises:
        DimensionError: If gamma and matrix have different shapes
        ParameterError: If mode is unknown
    """
    gamma = validate_square_matrix(gamma, "gamma")
    matrix = validate_square_matrix(matrix, "matrix", require_finite=False)
    if gamma.shape != matrix.shape:
        raise_dimension_error(
            "gamma and matrix must have the same shape",
            array_name="matrix",
            expected_shape=gamma.shape,
            actual_shape=matrix.shape
        )

    diag = np.diag(matrix)
    if mode == "nonpositive":
        bad = diag <= 0
    elif mode == "zero":
        bad = diag == 0
    else:
        raise_parameter_error(
            f"Invalid repair mode: {mode!r}",
            param_name="mode",
            param_value=mode,
            constraint="Must be one of ['nonpositive', 'zero']"
        )

    out = matrix.copy()
    if not bad.any() and not bound_partial_correlations:
        return out

    fallback = _fallback_diagonal(gamma, rtol)
    bad_idx = np.flatnonzero(bad)
    if bad_idx.size:
        logger.debug(f"Replacing {bad_idx.size} degenerate diagonal entries")
        out[bad_idx, bad_idx] = fallback[bad_idx]

    if bound_partial_correlations:
        if max_iter is None:
            max_iter = get_config("numerical", "repair_max_iter", 1000)
        _bound_partial_correlations(out, bad_idx, fallback, max_iter)

    return out


def _normalised_rows(matrix: Matrix, rows: np.ndarray) -> Matrix:
    """Rows of ``matrix`` scaled into partial-correlation magnitude."""
    scale = 1.0 / np.sqrt(np.diag(matrix))
    return matrix[rows, :] * np.outer(scale[rows], scale)


def _bound_partial_correlations(out: Matrix, bad_idx: np.ndarray,
                                fallback: Vector, max_iter: int) -> None:
    """Raise diagonal entries in place until every |partial correlation| <= 1."""
    p = out.shape[0]
    if np.any(np.diag(out) <= 0):
        warn_numeric(
            "Bounded diagonal repair skipped: non-positive diagonal remains",
            operation="correct_diag",
            issue="target could not supply a positive diagonal"
        )
        return

    repaired = set(bad_idx.tolist())
    row_max = np.abs(_normalised_rows(out, np.arange(p))).max(axis=1)
    repaired.update(np.flatnonzero(row_max > 1 + _CORRELATION_SLACK).tolist())

    idx = np.array(sorted(repaired), dtype=int)
    if idx.size == 0:
        return

    for _ in range(max_iter):
        row_max = np.abs(_normalised_rows(out, idx)).max(axis=1)
        if row_max.max() - 1 <= _CORRELATION_SLACK:
            return
        for ii in idx[row_max > 1 + _CORRELATION_SLACK]:
            others = np.arange(p) != ii
            bound = (out[ii, others] / np.sqrt(np.diag(out)[others])) ** 2
            out[ii, ii] = max(fallback[ii], bound.max()) if bound.size else fallback[ii]

    warn_numeric(
        f"Bounded diagonal repair did not converge in {max_iter} iterations",
        operation="correct_diag",
        issue="iteration limit reached"
    )


def precision_to_partial_correlation(matrix: PrecisionMatrix) -> CorrelationMatrix:
    """
    Normalise a precision matrix into partial-correlation form.

    Computes -D[i, j] / sqrt(D[i, i] * D[j, j]). With this sign convention
    the diagonal is exactly -1.

    Rows and columns whose diagonal entry is not strictly positive cannot be
    normalised; they are set to NaN and a DataQualityWarning is issued.

    Args:
        matrix: Symmetric precision estimate

    Returns:
        Partial correlation matrix

    Examples:
        >>> import numpy as np
        >>> from lrpc.utils.matrix_ops import precision_to_partial_correlation
        >>> precision_to_partial_correlation(np.array([[2.0, -1.0], [-1.0, 2.0]]))
        array([[-1. ,  0.5],
               [ 0.5, -1. ]])
    """
    matrix = validate_square_matrix(matrix, "matrix", require_finite=False)
    diag = np.diag(matrix)
    good = diag > 0

    if not good.all():
        bad: List[int] = np.flatnonzero(~good).tolist()
        warn_data_quality(
            "Precision estimate has non-positive diagonal entries; "
            "the affected partial correlations are undefined",
            quantity="partial correlation",
            indices=bad,
            details="Enable diagonal correction to repair the estimate"
        )

    scale = np.full(diag.shape, np.nan)
    scale[good] = 1.0 / np.sqrt(diag[good])
    corr = -matrix * np.outer(scale, scale)

    good_idx = np.flatnonzero(good)
    corr[good_idx, good_idx] = -1.0
    return corr
