# lrpc/core/validation.py

"""
Validation utilities for the LRPC Toolbox.

This module provides the input checks run at the public entry points of the
estimation engine. Every check raises one of the core exceptions, so invalid
configuration is rejected before any linear program is solved.
"""

from typing import Any, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from lrpc.core.exceptions import (
    raise_dimension_error, raise_parameter_error, raise_data_error
)
from lrpc.core.types import Matrix, Vector, TimeSeriesPanel


def validate_square_matrix(
    matrix: Any,
    matrix_name: str = "matrix",
    require_finite: bool = True
) -> Matrix:
    """Validate that a matrix is a finite, real, square 2D array.

    Args:
        matrix: Matrix to validate
        matrix_name: Name of the matrix for error messages
        require_finite: Whether NaN and infinite entries are rejected

    Returns:
        np.ndarray: The validated matrix as a float array

    Raises:
        TypeError: If matrix is None
        DimensionError: If matrix is not square
        DataError: If matrix contains non-finite values
    """
    if matrix is None:
        raise TypeError(f"{matrix_name} cannot be None")

    matrix = np.asarray(matrix, dtype=float)

    if matrix.ndim != 2:
        raise_dimension_error(
            f"{matrix_name} must be 2-dimensional, got {matrix.ndim} dimensions",
            array_name=matrix_name,
            expected_shape="square matrix",
            actual_shape=matrix.shape
        )

    if matrix.shape[0] != matrix.shape[1]:
        raise_dimension_error(
            f"{matrix_name} must be square, got shape {matrix.shape}",
            array_name=matrix_name,
            expected_shape=f"({matrix.shape[0]}, {matrix.shape[0]})",
            actual_shape=matrix.shape
        )

    if matrix.shape[0] == 0:
        raise_dimension_error(
            f"{matrix_name} must not be empty",
            array_name=matrix_name,
            expected_shape="(p, p) with p >= 1",
            actual_shape=matrix.shape
        )

    if require_finite and not np.all(np.isfinite(matrix)):
        raise_data_error(
            f"{matrix_name} contains NaN or infinite values",
            data_name=matrix_name,
            issue="non-finite entries"
        )

    return matrix


def validate_vector(
    vector: Any,
    expected_length: Optional[int] = None,
    vector_name: str = "vector"
) -> Vector:
    """Validate that an array is a finite vector with the expected length.

    Column and row vectors are flattened.

    Raises:
        DimensionError: If vector is not 1-dimensional or has wrong length
        DataError: If vector contains non-finite values
    """
    vector = np.asarray(vector, dtype=float)

    if vector.ndim == 2 and 1 in vector.shape:
        vector = vector.ravel()
    elif vector.ndim != 1:
        raise_dimension_error(
            f"{vector_name} must be 1-dimensional, got {vector.ndim} dimensions",
            array_name=vector_name,
            expected_shape="1D vector",
            actual_shape=vector.shape
        )

    if expected_length is not None and len(vector) != expected_length:
        raise_dimension_error(
            f"{vector_name} has length {len(vector)}, expected {expected_length}",
            array_name=vector_name,
            expected_shape=f"vector of length {expected_length}",
            actual_shape=vector.shape
        )

    if not np.all(np.isfinite(vector)):
        raise_data_error(
            f"{vector_name} contains NaN or infinite values",
            data_name=vector_name,
            issue="non-finite entries"
        )

    return vector


def validate_panel(
    data: TimeSeriesPanel,
    min_length: int = 2,
    data_name: str = "x"
) -> Matrix:
    """Validate a multivariate time series stored with one row per variable.

    Args:
        data: p x n array or DataFrame (rows are variables, columns time points)
        min_length: Minimum number of time points
        data_name: Name of the data for error messages

    Returns:
        np.ndarray: The validated p x n float array

    Raises:
        TypeError: If data is not an array or DataFrame
        DimensionError: If data is not 2-dimensional
        DataError: If data is too short or contains invalid values
    """
    if isinstance(data, pd.DataFrame):
        values = data.to_numpy(dtype=float)
    elif isinstance(data, np.ndarray):
        values = np.asarray(data, dtype=float)
    else:
        raise TypeError(
            f"{data_name} must be a NumPy array or Pandas DataFrame, "
            f"got {type(data).__name__}"
        )

    if values.ndim != 2:
        raise_dimension_error(
            f"{data_name} must be 2-dimensional, got {values.ndim} dimensions",
            array_name=data_name,
            expected_shape="(p, n)",
            actual_shape=values.shape
        )

    if values.shape[1] < min_length:
        raise_data_error(
            f"{data_name} is too short ({values.shape[1]} time points), "
            f"minimum required length is {min_length}",
            data_name=data_name,
            issue=f"insufficient length: {values.shape[1]} < {min_length}"
        )

    if np.isnan(values).any():
        raise_data_error(
            f"{data_name} contains NaN values",
            data_name=data_name,
            issue="contains NaN values"
        )
    if np.isinf(values).any():
        raise_data_error(
            f"{data_name} contains infinite values",
            data_name=data_name,
            issue="contains infinite values"
        )

    return values


def validate_positive(value: Any, param_name: str) -> float:
    """Validate a strictly positive, finite scalar."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise_parameter_error(
            f"{param_name} must be a number, got {type(value).__name__}",
            param_name=param_name,
            param_value=value,
            constraint="Positive real number"
        )
    if not np.isfinite(number) or number <= 0:
        raise_parameter_error(
            f"{param_name} must be positive, got {value}",
            param_name=param_name,
            param_value=value,
            constraint="Must be positive"
        )
    return number


def validate_positive_int(value: Any, param_name: str) -> int:
    """Validate a strictly positive integer (bools are rejected)."""
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)):
        raise_parameter_error(
            f"{param_name} must be a positive integer, got {value!r}",
            param_name=param_name,
            param_value=value,
            constraint="Must be a positive integer"
        )
    if value <= 0:
        raise_parameter_error(
            f"{param_name} must be a positive integer, got {value}",
            param_name=param_name,
            param_value=value,
            constraint="Must be a positive integer"
        )
    return int(value)


def validate_choice(value: Any, choices: Sequence[str], param_name: str) -> str:
    """Validate that value is one of the allowed string options."""
    if value not in choices:
        raise_parameter_error(
            f"Invalid {param_name}: {value!r}",
            param_name=param_name,
            param_value=value,
            constraint=f"Must be one of {list(choices)}"
        )
    return value

