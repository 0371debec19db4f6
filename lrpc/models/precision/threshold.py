# lrpc/models/precision/threshold.py
"""
Data-driven hard thresholding of precision estimates.

The threshold is chosen from a path of candidates between zero and the
largest off-diagonal magnitude. For each candidate the number of surviving
off-diagonal pairs is counted; small noise entries disappear quickly as the
threshold grows while genuine edges persist, so the log edge-count curve
has a change in level. The threshold at the CUSUM change point of that
curve is selected. Diagonal entries are never thresholded.
"""

import logging
from typing import Callable, Optional

import numpy as np

from lrpc.core.config import get_config
from lrpc.core.results import ThresholdResult
from lrpc.core.types import Matrix
from lrpc.core.validation import validate_positive_int, validate_square_matrix
from lrpc.models.precision._numba_core import count_edges, cusum_statistic
from lrpc.models.precision.plots import plot_threshold

# Set up module-level logger
logger = logging.getLogger("lrpc.models.precision.threshold")

# Threshold operator: (matrix, do_plot) -> ThresholdResult
ThresholdOperator = Callable[..., ThresholdResult]


def apply_threshold(matrix: Matrix, thr: float) -> Matrix:
    """Zero the off-diagonal entries with |m_ij| <= thr."""
    out = np.array(matrix, dtype=float, copy=True)
    off_diag = ~np.eye(out.shape[0], dtype=bool)
    out[off_diag & (np.abs(out) <= thr)] = 0.0
    return out


def threshold(matrix: Matrix, do_plot: bool = False,
              path_length: Optional[int] = None) -> ThresholdResult:
    """
    Threshold the off-diagonal entries of a matrix.

    Args:
        matrix: Square matrix (Delta or Omega)
        do_plot: Attach a figure of the edge-count curve
        path_length: Number of candidate thresholds; defaults to the
            configured ``estimation.threshold_path_length``

    Returns:
        ThresholdResult with the thresholded matrix, the selected threshold,
        the path and the edge counts

    Examples:
        >>> import numpy as np
        >>> from lrpc.models.precision.threshold import threshold
        >>> out = threshold(np.eye(4))
        >>> out.thr
        0.0
    """
    matrix = validate_square_matrix(matrix, "matrix")
    if path_length is None:
        path_length = get_config("estimation", "threshold_path_length", 500)
    path_length = validate_positive_int(path_length, "path_length")

    p = matrix.shape[0]
    abs_matrix = np.abs(matrix)
    off_diag = ~np.eye(p, dtype=bool)
    max_off = float(abs_matrix[off_diag].max()) if p > 1 else 0.0

    if max_off == 0.0 or path_length < 3:
        logger.debug("Nothing to threshold")
        return ThresholdResult(thr_mat=matrix.copy(), thr=0.0)

    thr_path = np.linspace(0.0, max_off, path_length, endpoint=False)
    edges = count_edges(np.ascontiguousarray(abs_matrix), thr_path)
    stat = cusum_statistic(np.log1p(edges.astype(float)))
    # first candidate after the change point
    split = int(np.argmax(stat))
    thr = float(thr_path[min(split + 1, path_length - 1)])

    logger.debug(f"Selected threshold {thr:.6g}")
    figure = plot_threshold(thr_path, edges, thr) if do_plot else None
    return ThresholdResult(
        thr_mat=apply_threshold(matrix, thr),
        thr=thr,
        thr_path=thr_path,
        edges=edges.astype(float),
        figure=figure
    )
