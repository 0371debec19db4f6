# lrpc/__init__.py
"""
LRPC Toolbox - Long-run partial correlations for high-dimensional time series

Estimates a sparse inverse of the innovation covariance of a factor-adjusted
VAR process by column-wise constrained L1 minimisation (CLIME/Dantzig type),
with the regularisation selected by cross-validation and an optional
two-stage adaptive variant, and transforms it into partial-correlation and
long-run partial-correlation matrices.

This module serves as the main entry point for the package.
"""

import os
import logging
import importlib
import warnings
from typing import Union

# Set up package-wide logger
logger = logging.getLogger("lrpc")
logger.setLevel(logging.INFO)
_handler = logging.StreamHandler()
_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logger.addHandler(_handler)

from .version import __version__, __title__, __description__, __license__, __dependencies__

# Import subpackages to make them available in the lrpc namespace
try:
    from . import core
    from . import utils
    from . import models
except ImportError as e:
    logger.error(f"Error importing LRPC Toolbox components: {e}")
    raise ImportError(
        "Failed to import LRPC Toolbox components. Please ensure the package "
        "is correctly installed. You can install it using: "
        "pip install lrpc-toolbox"
    ) from e

from .core.config import get_config, set_config, reset_config, save_config
from .core.results import LRPCResult, CrossValidationResult, InverseEstimate, ThresholdResult
from .models.precision import (
    FactorVARFit,
    TuningArgs,
    par_lrpc,
    direct_cv,
    direct_inv_est,
    adaptive_direct_inv_est,
    threshold,
)


def _configure_logging() -> None:
    """Apply the configured log level and optional file handler."""
    level = os.environ.get("LRPC_LOG_LEVEL") or get_config("logging", "log_level", "INFO")
    try:
        logger.setLevel(getattr(logging, str(level).upper()))
    except AttributeError:
        logger.warning(f"Unknown log level {level!r}; using INFO")
        logger.setLevel(logging.INFO)

    formatter = logging.Formatter(
        get_config("logging", "log_format"),
        get_config("logging", "log_date_format")
    )
    _handler.setFormatter(formatter)
    if not get_config("logging", "console_logging", True):
        logger.removeHandler(_handler)

    log_file = get_config("logging", "log_file")
    if get_config("logging", "file_logging", False) and log_file is not None:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


def _check_dependencies() -> None:
    """
    Check for required dependencies and their versions.

    Raises ImportError if a dependency is missing and warns if one is older
    than the tested version.
    """
    missing_required = []
    outdated_packages = []

    for package, requirement in __dependencies__.items():
        min_version = requirement.lstrip(">=")
        try:
            imported = importlib.import_module(package)
        except ImportError:
            missing_required.append(package)
            continue
        pkg_version = getattr(imported, "__version__", None)
        if pkg_version is None:
            logger.warning(f"Cannot determine version for {package}")
            continue
        if _version_tuple(pkg_version) < _version_tuple(min_version):
            outdated_packages.append((package, pkg_version, min_version))

    if missing_required:
        logger.error(f"Required packages missing: {', '.join(missing_required)}")
        raise ImportError(
            f"LRPC Toolbox requires the following packages: "
            f"{', '.join(missing_required)}. Please install them with pip."
        )

    for package, current, required in outdated_packages:
        warnings.warn(
            f"{package} version {current} is older than the recommended "
            f"version {required}. This may cause compatibility issues.",
            UserWarning
        )


def _version_tuple(version: str) -> tuple:
    parts = []
    for part in version.split(".")[:3]:
        digits = "".join(ch for ch in part if ch.isdigit())
        parts.append(int(digits) if digits else 0)
    return tuple(parts)


# Public API functions

def get_version() -> str:
    """
    Return the version of the LRPC Toolbox.

    Returns:
        str: Version string in format MAJOR.MINOR.PATCH
    """
    return __version__


def set_log_level(level: Union[str, int]) -> None:
    """
    Set the logging level for the LRPC Toolbox.

    Args:
        level: Logging level, either as string ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
              or as an integer constant from the logging module
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    logger.setLevel(level)
    logger.info(f"Log level set to {logging.getLevelName(level)}")


# Initialize the package
_check_dependencies()
_configure_logging()

__all__ = [
    # Subpackages
    'core',
    'models',
    'utils',

    # Estimators
    'FactorVARFit',
    'TuningArgs',
    'par_lrpc',
    'direct_cv',
    'direct_inv_est',
    'adaptive_direct_inv_est',
    'threshold',

    # Results
    'LRPCResult',
    'CrossValidationResult',
    'InverseEstimate',
    'ThresholdResult',

    # Configuration
    'get_config',
    'set_config',
    'reset_config',
    'save_config',

    # Public functions
    'get_version',
    'set_log_level',

    # Version info
    '__version__',
]

logger.debug(f"LRPC Toolbox v{__version__} initialized successfully")
