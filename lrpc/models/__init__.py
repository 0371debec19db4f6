# lrpc/models/__init__.py
"""
LRPC Toolbox Models Module

This module provides the estimators of the toolbox. The precision subpackage
implements the direct and adaptive CLIME-type inverse estimators, the
regularisation-path cross-validator and the long-run partial-correlation
assembler.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("lrpc.models")

from . import precision

__all__ = ['precision']
