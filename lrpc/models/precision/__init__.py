# lrpc/models/precision/__init__.py
"""
Precision-matrix estimation for factor-adjusted VAR processes.

This package provides:
- A constrained column solver (one linear program per column)
- Direct and two-stage adaptive inverse estimators
- Regularisation-path cross-validation
- A data-driven threshold operator
- The long-run partial-correlation assembler par_lrpc
"""

import logging

# Set up module-level logger
logger = logging.getLogger("lrpc.models.precision")

from .column_solver import (
    solve_column,
    direct_constraints,
    direct_rhs,
    adaptive_constraints,
)
from .pool import ColumnPool, assemble_columns, column_pool
from .direct import direct_inv_est
from .adaptive import adaptive_direct_inv_est
from .inputs import FactorVARFit, DynamicEstimate, DynamicEstimator, sample_dynamic_estimate
from .cross_validation import eta_path, cv_loss, fold_indices, direct_cv
from .threshold import threshold, apply_threshold
from .plots import plot_cv_curve, plot_threshold
from .lrpc import TuningArgs, par_lrpc

__all__ = [
    # Column solver
    'solve_column',
    'direct_constraints',
    'direct_rhs',
    'adaptive_constraints',

    # Worker pool
    'ColumnPool',
    'assemble_columns',
    'column_pool',

    # Estimators
    'direct_inv_est',
    'adaptive_direct_inv_est',

    # Inputs
    'FactorVARFit',
    'DynamicEstimate',
    'DynamicEstimator',
    'sample_dynamic_estimate',

    # Cross-validation
    'eta_path',
    'cv_loss',
    'fold_indices',
    'direct_cv',

    # Thresholding and plots
    'threshold',
    'apply_threshold',
    'plot_cv_curve',
    'plot_threshold',

    # Assembler
    'TuningArgs',
    'par_lrpc',
]
