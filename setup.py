#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Legacy entry point for the LRPC Toolbox build.

All metadata lives in pyproject.toml; this file only lets older tooling that
still invokes ``python setup.py`` build the package.
"""

import setuptools

if __name__ == "__main__":
    setuptools.setup()
