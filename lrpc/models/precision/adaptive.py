# lrpc/models/precision/adaptive.py
"""
Adaptive (two-stage) inverse estimator.

Implements the adaptive constrained L1 procedure of Cai, Liu and Zhou (2016).
Stage 1 computes a pilot estimate of every diagonal entry of the inverse
with a row tolerance proportional to the unknown entry itself. Stage 2
re-solves every column with the tolerance

    b_i = eta * sqrt(diag(Gamma)) * sqrt(pilot_i)

so that each column is regularised on its own scale. Both stages use the
ridge-perturbed target Gamma + I/n and share a single worker pool.
"""

import logging
from typing import Optional

import numpy as np

from lrpc.core.exceptions import raise_parameter_error
from lrpc.core.results import InverseEstimate
from lrpc.core.types import CovarianceMatrix, Matrix, SymmetrizeRule, Vector
from lrpc.core.validation import (
    validate_choice, validate_positive, validate_positive_int, validate_square_matrix
)
from lrpc.models.precision.column_solver import (
    adaptive_constraints, direct_constraints, direct_rhs, resolve_lp_method,
    solve_column
)
from lrpc.models.precision.direct import SYMMETRIZE_RULES
from lrpc.models.precision.pool import ColumnPool, assemble_columns, column_pool
from lrpc.utils.matrix_ops import correct_diag, make_symmetric

# Set up module-level logger
logger = logging.getLogger("lrpc.models.precision.adaptive")


def default_eta(p: int, n: int) -> float:
    """Default regularisation 2 * sqrt(log p / n)."""
    return 2 * np.sqrt(np.log(p) / n)


def pilot_column_task(index: int, gamma_ridge: Matrix, diag: Vector,
                      eta_adaptive: float, method: Optional[str] = None) -> Vector:
    """Solve the Stage-1 LP for column ``index``."""
    scale = eta_adaptive * np.maximum(diag, diag[index])
    a_ub, b_ub, a_eq, b_eq = adaptive_constraints(gamma_ridge, index, scale)
    return solve_column(a_ub, b_ub, a_eq, b_eq, column=index, method=method)


def final_column_task(index: int, a_ub: Matrix, diag: Vector, pilot: Vector,
                      eta: float, method: Optional[str] = None) -> Vector:
    """Solve the Stage-2 LP for column ``index``."""
    bounds = eta * np.sqrt(diag) * np.sqrt(pilot[index])
    return solve_column(a_ub, direct_rhs(bounds, index), column=index, method=method)


def adaptive_direct_inv_est(
    gamma: CovarianceMatrix,
    n: int,
    eta: Optional[float] = None,
    eta_adaptive: Optional[float] = None,
    symmetric: SymmetrizeRule = "min",
    do_correct: bool = False,
    n_cores: Optional[int] = None,
    pool: Optional[ColumnPool] = None,
    cutoff: Optional[float] = None,
    method: Optional[str] = None,
    bound_partial_correlations: bool = False
) -> InverseEstimate:
    """
    Two-stage adaptive estimate of the inverse of ``gamma``.

    Args:
        gamma: Symmetric p x p target matrix (p >= 2)
        n: Sample size used for the ridge, the cutoff and the defaults
        eta: Stage-2 regularisation; defaults to 2 * sqrt(log p / n)
        eta_adaptive: Stage-1 regularisation; defaults to 2 * sqrt(log p / n)
        symmetric: Symmetrisation rule
        do_correct: Replace exactly-zero diagonal entries by the
            pseudo-inverse diagonal of the ridge-free ``gamma``
        n_cores: Worker pool size when no pool is supplied
        pool: An open ColumnPool to reuse
        cutoff: Stage-1 eligibility cutoff on diag(Gamma); defaults to
            sqrt(n / log p). Columns above it receive the pilot value
            sqrt(log p / n) without solving.
        method: linprog method override
        bound_partial_correlations: Run the bounded diagonal repair when correcting

    Returns:
        InverseEstimate with the Stage-1 pilot diagonal attached

    Raises:
        ParameterError: If p < 2, n or a regularisation value is not positive
        ColumnSolveError: If any column LP fails in either stage
    """
    gamma = validate_square_matrix(gamma, "gamma")
    n = validate_positive_int(n, "n")
    validate_choice(symmetric, SYMMETRIZE_RULES, "symmetric")

    p = gamma.shape[0]
    if p < 2:
        raise_parameter_error(
            "The adaptive estimator requires at least two variables",
            param_name="gamma",
            param_value=gamma.shape,
            constraint="p >= 2"
        )

    log_p = np.log(p)
    eta_adaptive = default_eta(p, n) if eta_adaptive is None else validate_positive(eta_adaptive, "eta_adaptive")
    eta = default_eta(p, n) if eta is None else validate_positive(eta, "eta")
    if cutoff is None:
        cutoff = np.sqrt(n / log_p)

    gamma_ridge = gamma + np.eye(p) / n
    diag = np.maximum(np.diag(gamma), 0.0)
    eligible = np.flatnonzero(diag <= cutoff)

    method = resolve_lp_method(method)

    pilot = np.full(p, np.sqrt(log_p / n))
    with column_pool(n_cores, pool) as active:
        # Stage 1: pilot diagonal
        pilot_columns = active.map_columns(
            pilot_column_task, eligible, gamma_ridge, diag, eta_adaptive, method
        )
        for index, column in pilot_columns.items():
            # d-_i = 0 up to solver tolerance
            pilot[index] = max(column[index], 0.0)
        logger.debug(f"Stage 1 solved {len(eligible)} of {p} pilot columns")

        # Stage 2: final columns
        a_ub = direct_constraints(gamma_ridge)
        columns = active.map_columns(final_column_task, range(p), a_ub, diag, pilot, eta, method)

    matrix = make_symmetric(assemble_columns(columns, p), symmetric)
    if do_correct:
        matrix = correct_diag(gamma, matrix, mode="zero",
                              bound_partial_correlations=bound_partial_correlations)

    logger.debug(f"Adaptive estimate computed for p={p}, eta={eta:.6g}, "
                 f"eta_adaptive={eta_adaptive:.6g}")
    return InverseEstimate(matrix=matrix, eta=eta, symmetric=symmetric,
                           adaptive=True, pilot=pilot)
