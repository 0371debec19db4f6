"""
LRPC Toolbox Utilities Module

This module provides the numerical helpers shared by the estimators: the
matrix repair utilities applied to every inverse estimate and the sample
second-moment estimators used to build cross-validation targets.

Key components:
- Matrix repair (symmetrisation, pseudo-inverse diagonal, diagonal correction)
- Partial-correlation normalisation of precision matrices
- Sample autocovariances and Bartlett-kernel spectral densities
"""

import logging

# Set up module-level logger
logger = logging.getLogger("lrpc.utils")

# Import matrix repair utilities
from .matrix_ops import (
    make_symmetric,
    gen_inverse_diag,
    correct_diag,
    precision_to_partial_correlation,
)

# Import second-moment estimators
from .covariance import (
    autocovariance,
    bartlett_weights,
    default_bandwidth,
    spectral_density,
)

__all__ = [
    'make_symmetric',
    'gen_inverse_diag',
    'correct_diag',
    'precision_to_partial_correlation',
    'autocovariance',
    'bartlett_weights',
    'default_bandwidth',
    'spectral_density',
]
