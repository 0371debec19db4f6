# lrpc/version.py
"""
LRPC Toolbox Version Information

This module contains version information and package metadata, made
available programmatically as lrpc.__version__.

The toolbox follows semantic versioning (MAJOR.MINOR.PATCH).
"""

from typing import Dict

# Version components
VERSION_MAJOR = 0
VERSION_MINOR = 1
VERSION_PATCH = 0

# Full version string
__version__ = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"

# Package metadata
__title__ = "LRPC Toolbox"
__description__ = "Sparse precision and long-run partial correlation estimation for factor-adjusted VAR processes"
__license__ = "MIT"

# Python version requirements
__python_requires__ = ">=3.10"

# Package dependencies
__dependencies__: Dict[str, str] = {
    "numpy": ">=1.26.0",
    "scipy": ">=1.11.3",
    "pandas": ">=2.1.1",
    "numba": ">=0.58.0",
    "statsmodels": ">=0.14.0",
    "matplotlib": ">=3.8.0",
}


def get_version_info() -> Dict[str, int]:
    """Return the version components."""
    return {
        "major": VERSION_MAJOR,
        "minor": VERSION_MINOR,
        "patch": VERSION_PATCH,
    }
