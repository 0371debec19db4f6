"""
LRPC Toolbox Core Module

This module provides the shared foundation of the toolbox: the exception
hierarchy, configuration management, type aliases, input validation and the
result containers returned by every estimator.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("lrpc.core")

from .exceptions import (
    LRPCError,
    ParameterError,
    DimensionError,
    DataError,
    OptimizationError,
    ColumnSolveError,
    EstimationError,
    ConfigurationError,
    LRPCWarning,
    NumericWarning,
    DataQualityWarning,
)

from .types import (
    Vector,
    Matrix,
    CovarianceMatrix,
    PrecisionMatrix,
    CorrelationMatrix,
    CoefficientStack,
    SymmetrizeRule,
    CVTarget,
    Symmetrize,
    Target,
)

from .validation import (
    validate_square_matrix,
    validate_vector,
    validate_panel,
    validate_positive,
    validate_positive_int,
    validate_choice,
)

from .config import (
    get_config,
    set_config,
    reset_config,
    save_config,
    initialize_config,
    default_n_cores,
    get_config_manager,
    ConfigManager,
    LRPCConfig,
)

from .results import (
    InverseEstimate,
    CrossValidationResult,
    ThresholdResult,
    LRPCResult,
)

__all__ = [
    # Exceptions
    'LRPCError',
    'ParameterError',
    'DimensionError',
    'DataError',
    'OptimizationError',
    'ColumnSolveError',
    'EstimationError',
    'ConfigurationError',
    'LRPCWarning',
    'NumericWarning',
    'DataQualityWarning',

    # Types
    'Vector',
    'Matrix',
    'CovarianceMatrix',
    'PrecisionMatrix',
    'CorrelationMatrix',
    'CoefficientStack',
    'SymmetrizeRule',
    'CVTarget',
    'Symmetrize',
    'Target',

    # Validation
    'validate_square_matrix',
    'validate_vector',
    'validate_panel',
    'validate_positive',
    'validate_positive_int',
    'validate_choice',

    # Configuration
    'get_config',
    'set_config',
    'reset_config',
    'save_config',
    'initialize_config',
    'default_n_cores',
    'get_config_manager',
    'ConfigManager',
    'LRPCConfig',

    # Results
    'InverseEstimate',
    'CrossValidationResult',
    'ThresholdResult',
    'LRPCResult',
]
