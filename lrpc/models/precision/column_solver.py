# lrpc/models/precision/column_solver.py
"""
Constrained column solver.

Every column d of a CLIME-type inverse estimate solves

    minimise ||d||_1  subject to  |Gamma d - e_i| <= b  (row-wise)

which is written as a linear program over the split variables
x = [d+, d-] >= 0 with d = d+ - d-. The objective is sum(x) and the two sign
constraints stack into

    [[-Gamma,  Gamma],       [b - e_i,
     [ Gamma, -Gamma]] x  <=  b + e_i].

The helpers below build the constraint system for the direct and the
adaptive estimators and hand it to scipy's HiGHS interface. Failures are
never masked as zero columns: any status other than success raises
ColumnSolveError naming the column.
"""

import logging
from typing import Optional, Tuple

import numpy as np
from scipy.optimize import linprog

from lrpc.core.config import get_config
from lrpc.core.exceptions import ColumnSolveError
from lrpc.core.types import CovarianceMatrix, LPMethod, Matrix, Vector

# Set up module-level logger
logger = logging.getLogger("lrpc.models.precision.column_solver")

# scipy.optimize.linprog status codes
_STATUS_MESSAGES = {
    1: "iteration limit reached",
    2: "problem is infeasible",
    3: "problem is unbounded",
    4: "numerical difficulties encountered",
}


def resolve_lp_method(method: Optional[LPMethod] = None) -> LPMethod:
    """Return ``method`` or, when None, the configured ``numerical.lp_method``.

    Call this in the submitting process: worker processes started with spawn
    or forkserver do not inherit runtime configuration.
    """
    if method is None:
        method = get_config("numerical", "lp_method", "highs")
    return method


def direct_constraints(gamma: CovarianceMatrix) -> Matrix:
    """
    Inequality matrix [[-Gamma, Gamma], [Gamma, -Gamma]] shared by all columns.

    Args:
        gamma: p x p target matrix

    Returns:
        2p x 2p constraint matrix over the split variables
    """
    gamma = np.asarray(gamma, dtype=float)
    top = np.hstack([-gamma, gamma])
    return np.vstack([top, -top])


def direct_rhs(bounds: Vector, index: int) -> Vector:
    """
    Right-hand side [b - e_i, b + e_i] for column ``index``.

    Args:
        bounds: Length-p vector of row tolerances
        index: Zero-based column index

    Returns:
        Length-2p right-hand side
    """
    bounds = np.asarray(bounds, dtype=float)
    unit = np.zeros_like(bounds)
    unit[index] = 1.0
    return np.concatenate([bounds - unit, bounds + unit])


def adaptive_constraints(
    gamma_ridge: CovarianceMatrix,
    index: int,
    scale: Vector
) -> Tuple[Matrix, Vector, Matrix, Vector]:
    """
    Constraint system for a Stage-1 (pilot) column of the adaptive estimator.

    The row tolerance is proportional to |d_i|: both split columns of
    coordinate ``index`` are shifted by ``-scale`` in every inequality row,
    so that row k reads |(Gamma d - e_i)_k| <= scale_k |d_i|. One equality
    row forces d-_i = 0, which keeps the own diagonal entry non-negative.

    Args:
        gamma_ridge: Ridge-perturbed target Gamma + I/n
        index: Zero-based column index
        scale: Length-p row scale eta_adaptive * max(diag_k, diag_i)

    Returns:
        Tuple (a_ub, b_ub, a_eq, b_eq)
    """
    p = gamma_ridge.shape[0]
    scale = np.asarray(scale, dtype=float)

    a_ub = direct_constraints(gamma_ridge)
    shift = np.concatenate([scale, scale])
    a_ub[:, index] -= shift
    a_ub[:, index + p] -= shift

    b_ub = direct_rhs(np.zeros(p), index)

    a_eq = np.zeros((1, 2 * p))
    a_eq[0, index + p] = 1.0
    b_eq = np.zeros(1)

    return a_ub, b_ub, a_eq, b_eq


def solve_column(
    a_ub: Matrix,
    b_ub: Vector,
    a_eq: Optional[Matrix] = None,
    b_eq: Optional[Vector] = None,
    column: Optional[int] = None,
    method: Optional[LPMethod] = None
) -> Vector:
    """
    Solve one column LP and return d = d+ - d-.

    Args:
        a_ub: 2p x 2p inequality matrix
        b_ub: Length-2p inequality right-hand side
        a_eq: Optional equality rows
        b_eq: Optional equality right-hand side
        column: Column index, reported on failure
        method: linprog method; defaults to the configured ``numerical.lp_method``

    Returns:
        Length-p column of the inverse estimate

    Raises:
        ColumnSolveError: If the LP is infeasible, unbounded, hits a solver
            limit or returns a non-finite solution
    """
    method = resolve_lp_method(method)

    n_vars = a_ub.shape[1]
    p = n_vars // 2

    result = linprog(
        c=np.ones(n_vars),
        A_ub=a_ub,
        b_ub=b_ub,
        A_eq=a_eq,
        b_eq=b_eq,
        bounds=(0, None),
        method=method,
    )

    if result.status != 0 or result.x is None:
        issue = _STATUS_MESSAGES.get(result.status, result.message)
        raise ColumnSolveError(
            f"Linear program for column {column} failed: {issue}",
            column=column,
            status=int(result.status),
            algorithm=method,
            issue=issue,
            details=str(result.message)
        )

    solution = result.x[:p] - result.x[p:]
    if not np.all(np.isfinite(solution)):
        raise ColumnSolveError(
            f"Linear program for column {column} returned a non-finite solution",
            column=column,
            status=int(result.status),
            algorithm=method,
            issue="non-finite solution"
        )

    if not np.any(solution):
        # Legal optimum when the tolerance admits d = 0; repaired downstream
        logger.debug(f"Column {column} solved to the zero vector")

    return solution
