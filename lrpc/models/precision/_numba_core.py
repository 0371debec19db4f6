"""
Numba-accelerated core functions for the threshold operator.

The edge count along a threshold path touches every off-diagonal pair once
per candidate, which dominates the cost of thresholding large matrices.
"""

import logging

import numpy as np
from numba import jit

# Set up module-level logger
logger = logging.getLogger("lrpc.models.precision._numba_core")


@jit(nopython=True, cache=True)
def count_edges(abs_matrix: np.ndarray, thr_path: np.ndarray) -> np.ndarray:
    """
    Count off-diagonal pairs (i < j) with |m_ij| above each threshold.

    Args:
        abs_matrix: Elementwise absolute value of a p x p matrix
        thr_path: Candidate thresholds

    Returns:
        Number of surviving pairs for every threshold
    """
    p = abs_matrix.shape[0]
    n_thr = thr_path.shape[0]
    edges = np.zeros(n_thr, dtype=np.int64)

    for i in range(p):
        for j in range(i + 1, p):
            value = abs_matrix[i, j]
            for k in range(n_thr):
                if value > thr_path[k]:
                    edges[k] += 1

    return edges


@jit(nopython=True, cache=True)
def cusum_statistic(y: np.ndarray) -> np.ndarray:
    """
    Standardised CUSUM statistic for a single change in mean.

    Returns a vector of the same length as y; entry k is the statistic for a
    split after position k, and the last entry is zero.
    """
    n = y.shape[0]
    stat = np.zeros(n)
    total = 0.0
    for k in range(n):
        total += y[k]

    partial = 0.0
    for k in range(n - 1):
        partial += y[k]
        m = k + 1
        stat[k] = abs(partial - m * total / n) * np.sqrt(n / (m * (n - m)))

    return stat
