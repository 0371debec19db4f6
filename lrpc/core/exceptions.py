'''
Custom exception classes for the LRPC Toolbox.

This module defines the hierarchy of exceptions and warnings raised by the
estimation engine. Every exception carries a primary message, optional details
and a context dictionary, and records the location it was raised from so that
failures deep inside a worker pool remain traceable.

The hierarchy separates configuration problems (rejected before any
optimisation work), optimisation failures (one column LP could not be solved)
and numerical degeneracies (reported as warnings and repaired locally).
'''

from typing import Any, Dict, List, Optional, Tuple, Union
import inspect
import warnings
import numpy as np
from pathlib import Path


class LRPCError(Exception):
    """Base exception class for all LRPC Toolbox errors.
    
    Attributes:
        message: The error message
        details: Additional details about the error
        context: Dictionary containing contextual information about the error
    """
    
    def __init__(self, 
                 message: str, 
                 details: Optional[str] = None, 
                 context: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the LRPCError.
        
        Args:
            message: The primary error message
            details: Additional details about the error
            context: Dictionary containing contextual information about the error
        """
        self.message = message
        self.details = details
        self.context = context or {}
        
        full_message = message
        if details:
            full_message += f"\n\nDetails: {details}"
        
        if context:
            context_str = "\n".join(f"  {k}: {v}" for k, v in context.items())
            full_message += f"\n\nContext:\n{context_str}"
        
        # Add caller information for better debugging
        frame = inspect.currentframe()
        if frame:
            try:
                frame = frame.f_back
                if frame:
                    caller_info = inspect.getframeinfo(frame)
                    full_message += f"\n\nLocation: {Path(caller_info.filename).name}:{caller_info.lineno}"
            finally:
                del frame  # Avoid reference cycles
        
        super().__init__(full_message)


class ParameterError(LRPCError):
    """Exception raised for invalid tuning or model parameters.
    
    Attributes:
        param_name: The name of the parameter that caused the error
        param_value: The invalid parameter value
        constraint: Description of the constraint that was violated
    """
    
    def __init__(self, 
                 message: str, 
                 param_name: Optional[str] = None,
                 param_value: Optional[Any] = None,
                 constraint: Optional[str] = None,
                 details: Optional[str] = None, 
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.param_name = param_name
        self.param_value = param_value
        self.constraint = constraint
        
        context_dict = dict(context or {})
        if param_name:
            context_dict["Parameter"] = param_name
        if param_value is not None:
            context_dict["Value"] = param_value
        if constraint:
            context_dict["Constraint"] = constraint
        
        super().__init__(message, details, context_dict)


class DimensionError(LRPCError):
    """Exception raised when array dimensions are incompatible.
    
    Attributes:
        array_name: The name of the array that caused the error
        expected_shape: The expected shape of the array
        actual_shape: The actual shape of the array
    """
    
    def __init__(self, 
                 message: str, 
                 array_name: Optional[str] = None,
                 expected_shape: Optional[Union[Tuple[int, ...], str]] = None,
                 actual_shape: Optional[Tuple[int, ...]] = None,
                 details: Optional[str] = None, 
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.array_name = array_name
        self.expected_shape = expected_shape
        self.actual_shape = actual_shape
        
        context_dict = dict(context or {})
        if array_name:
            context_dict["Array"] = array_name
        if expected_shape is not None:
            context_dict["Expected Shape"] = expected_shape
        if actual_shape is not None:
            context_dict["Actual Shape"] = actual_shape
        
        super().__init__(message, details, context_dict)


class DataError(LRPCError):
    """Exception raised when input data is invalid (NaN, infinite, too short).
    
    Attributes:
        data_name: The name of the data that caused the error
        issue: Description of the issue with the data
        index: The index or location where the issue was detected
    """
    
    def __init__(self, 
                 message: str, 
                 data_name: Optional[str] = None,
                 issue: Optional[str] = None,
                 index: Optional[Union[int, Tuple[int, ...], str]] = None,
                 details: Optional[str] = None, 
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.data_name = data_name
        self.issue = issue
        self.index = index
        
        context_dict = dict(context or {})
        if data_name:
            context_dict["Data"] = data_name
        if issue:
            context_dict["Issue"] = issue
        if index is not None:
            context_dict["Index"] = index
        
        super().__init__(message, details, context_dict)


class OptimizationError(LRPCError):
    """Exception raised when a linear program cannot be solved.
    
    Attributes:
        algorithm: The optimization algorithm being used
        objective: Description of the objective function
        issue: Description of the issue with the optimization
    """
    
    def __init__(self, 
                 message: str, 
                 algorithm: Optional[str] = None,
                 objective: Optional[str] = None,
                 issue: Optional[str] = None,
                 details: Optional[str] = None, 
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.algorithm = algorithm
        self.objective = objective
        self.issue = issue
        
        context_dict = dict(context or {})
        if algorithm:
            context_dict["Algorithm"] = algorithm
        if objective:
            context_dict["Objective"] = objective
        if issue:
            context_dict["Issue"] = issue
        
        super().__init__(message, details, context_dict)


class ColumnSolveError(OptimizationError):
    """Exception raised when the LP for a single column of the inverse fails.
    
    The column index is kept so that a failure inside a worker pool is never
    reported without the identity of the column that caused it.
    
    Attributes:
        column: Zero-based index of the failing column
        status: Solver status code, if the solver returned one
    """
    
    def __init__(self, 
                 message: str, 
                 column: Optional[int] = None,
                 status: Optional[int] = None,
                 algorithm: Optional[str] = None,
                 issue: Optional[str] = None,
                 details: Optional[str] = None, 
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.column = column
        self.status = status
        
        context_dict = dict(context or {})
        if column is not None:
            context_dict["Column"] = column
        if status is not None:
            context_dict["Status"] = status
        
        super().__init__(message, algorithm=algorithm,
                         objective="min ||d||_1", issue=issue,
                         details=details, context=context_dict)


class EstimationError(LRPCError):
    """Exception raised when an estimation stage fails for reasons other than a
    single LP, such as an inconsistent fitted-model input.
    
    Attributes:
        model_type: The estimator being run
        estimation_method: The estimation method being used
        issue: Description of the issue that occurred during estimation
    """
    
    def __init__(self, 
                 message: str, 
                 model_type: Optional[str] = None,
                 estimation_method: Optional[str] = None,
                 issue: Optional[str] = None,
                 details: Optional[str] = None, 
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.model_type = model_type
        self.estimation_method = estimation_method
        self.issue = issue
        
        context_dict = dict(context or {})
        if model_type:
            context_dict["Model Type"] = model_type
        if estimation_method:
            context_dict["Estimation Method"] = estimation_method
        if issue:
            context_dict["Issue"] = issue
        
        super().__init__(message, details, context_dict)


class ConfigurationError(LRPCError):
    """Exception raised for errors in configuration.
    
    Attributes:
        config_file: The configuration file path
        setting: The setting that caused the error
        value: The invalid setting value
        issue: Description of the issue with the configuration
    """
    
    def __init__(self, 
                 message: str, 
                 config_file: Optional[Union[str, Path]] = None,
                 setting: Optional[str] = None,
                 value: Optional[Any] = None,
                 issue: Optional[str] = None,
                 details: Optional[str] = None, 
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.config_file = config_file
        self.setting = setting
        self.value = value
        self.issue = issue
        
        context_dict = dict(context or {})
        if config_file:
            context_dict["Config File"] = str(config_file)
        if setting:
            context_dict["Setting"] = setting
        if value is not None:
            context_dict["Value"] = value
        if issue:
            context_dict["Issue"] = issue
        
        super().__init__(message, details, context_dict)


class LRPCWarning(Warning):
    """Base warning class for all LRPC Toolbox warnings.
    
    Attributes:
        message: The warning message
        details: Additional details about the warning
        context: Dictionary containing contextual information about the warning
    """
    
    def __init__(self, 
                 message: str, 
                 details: Optional[str] = None, 
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details
        self.context = context or {}
        
        full_message = message
        if details:
            full_message += f"\n\nDetails: {details}"
        
        if context:
            context_str = "\n".join(f"  {k}: {v}" for k, v in context.items())
            full_message += f"\n\nContext:\n{context_str}"
        
        super().__init__(full_message)


class NumericWarning(LRPCWarning):
    """Warning for numerical issues that were recovered locally.
    
    Attributes:
        operation: The operation where the issue was detected
        issue: Description of the numerical issue
        value: The value that may cause numerical issues
    """
    
    def __init__(self, 
                 message: str, 
                 operation: Optional[str] = None,
                 issue: Optional[str] = None,
                 value: Optional[Any] = None,
                 details: Optional[str] = None, 
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.operation = operation
        self.issue = issue
        self.value = value
        
        context_dict = dict(context or {})
        if operation:
            context_dict["Operation"] = operation
        if issue:
            context_dict["Issue"] = issue
        if value is not None:
            if isinstance(value, np.ndarray) and value.size > 10:
                context_dict["Value"] = f"Array with shape {value.shape}"
            else:
                context_dict["Value"] = value
        
        super().__init__(message, details, context_dict)


class DataQualityWarning(LRPCWarning):
    """Warning for estimates that cannot be safely normalised.
    
    Raised, for example, when a precision estimate keeps a non-positive
    diagonal because diagonal correction was disabled.
    
    Attributes:
        quantity: The estimate affected
        indices: Positions of the offending entries
    """
    
    def __init__(self, 
                 message: str, 
                 quantity: Optional[str] = None,
                 indices: Optional[List[int]] = None,
                 details: Optional[str] = None, 
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.quantity = quantity
        self.indices = indices
        
        context_dict = dict(context or {})
        if quantity:
            context_dict["Quantity"] = quantity
        if indices is not None:
            context_dict["Indices"] = indices
        
        super().__init__(message, details, context_dict)


# Helper functions for raising exceptions with consistent formatting

def raise_parameter_error(message: str, 
                         param_name: Optional[str] = None,
                         param_value: Optional[Any] = None,
                         constraint: Optional[str] = None,
                         details: Optional[str] = None, 
                         context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a ParameterError with consistent formatting.
    
    Raises:
        ParameterError: The formatted parameter error
    """
    raise ParameterError(message, param_name, param_value, constraint, details, context)


def raise_dimension_error(message: str, 
                         array_name: Optional[str] = None,
                         expected_shape: Optional[Union[Tuple[int, ...], str]] = None,
                         actual_shape: Optional[Tuple[int, ...]] = None,
                         details: Optional[str] = None, 
                         context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a DimensionError with consistent formatting.
    
    Raises:
        DimensionError: The formatted dimension error
    """
    raise DimensionError(message, array_name, expected_shape, actual_shape, details, context)


def raise_data_error(message: str, 
                    data_name: Optional[str] = None,
                    issue: Optional[str] = None,
                    index: Optional[Union[int, Tuple[int, ...], str]] = None,
                    details: Optional[str] = None, 
                    context: Optional[Dict[str, Any]] = None) -> None:
    """Raise a DataError with consistent formatting.
    
    Raises:
        DataError: The formatted data error
    """
    raise DataError(message, data_name, issue, index, details, context)


def warn_numeric(message: str, 
                operation: Optional[str] = None,
                issue: Optional[str] = None,
                value: Optional[Any] = None,
                details: Optional[str] = None, 
                context: Optional[Dict[str, Any]] = None) -> None:
    """Issue a NumericWarning with consistent formatting."""
    warnings.warn(
        NumericWarning(message, operation, issue, value, details, context),
        stacklevel=3
    )


def warn_data_quality(message: str,
                      quantity: Optional[str] = None,
                      indices: Optional[List[int]] = None,
                      details: Optional[str] = None,
                      context: Optional[Dict[str, Any]] = None) -> None:
    """Issue a DataQualityWarning with consistent formatting."""
    warnings.warn(
        DataQualityWarning(message, quantity, indices, details, context),
        stacklevel=3
    )
