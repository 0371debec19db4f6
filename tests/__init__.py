"""
LRPC Toolbox Test Suite

This package contains tests for the LRPC Toolbox: the matrix repair
utilities, the second-moment estimators, the column-wise inverse estimators,
cross-validation, thresholding and the long-run partial-correlation
assembler.
"""

# Version information for the test package
__version__ = "0.1.0"
