# lrpc/core/types.py

"""
Core type annotations for the LRPC Toolbox.

This module defines the type aliases and option literals shared across the
estimation engine, so that matrix roles (target, precision estimate,
coefficient stack) are visible in signatures.
"""

from enum import Enum
from typing import Any, Callable, Dict, Literal, Union

import numpy as np
import pandas as pd

# NumPy array type aliases
Vector = np.ndarray  # 1D array
Matrix = np.ndarray  # 2D array
Tensor3D = np.ndarray  # 3D array

# Specialized array types
CovarianceMatrix = np.ndarray  # Autocovariance or spectral target (symmetric)
PrecisionMatrix = np.ndarray  # Inverse covariance estimate
CorrelationMatrix = np.ndarray  # Partial correlation matrix (-1 on the diagonal)
CoefficientStack = np.ndarray  # p x (d*p) horizontal stack of VAR lag blocks
TimeSeriesPanel = Union[np.ndarray, pd.DataFrame]  # p x n, one row per variable

# Option literals
SymmetrizeRule = Literal["min", "max", "avg", "none"]
CVTarget = Literal["spec", "acv"]
ExecutorKind = Literal["process", "thread"]
RepairMode = Literal["nonpositive", "zero"]
LPMethod = Literal["highs", "highs-ds", "highs-ipm"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Configuration types
ConfigDict = Dict[str, Any]

# Column task: (gamma, index, ...) -> column vector
ColumnTask = Callable[..., np.ndarray]


class Symmetrize(Enum):
    """Rules for combining an assembled estimate with its transpose."""
    MIN = "min"
    MAX = "max"
    AVG = "avg"
    NONE = "none"


class Target(Enum):
    """Validation targets for cross-validation."""
    SPECTRAL = "spec"
    AUTOCOVARIANCE = "acv"
