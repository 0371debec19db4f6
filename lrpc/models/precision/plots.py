# lrpc/models/precision/plots.py
"""
Diagnostic plots for precision-matrix estimation.

Functions:
    plot_cv_curve: Cross-validation loss against the regularisation path
    plot_threshold: Edge count against the threshold path
"""

import logging
from typing import Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt

from lrpc.core.config import get_config
from lrpc.core.types import Vector

# Set up module-level logger
logger = logging.getLogger("lrpc.models.precision.plots")


def plot_cv_curve(
    eta_path: Vector,
    cv_error: Vector,
    eta: float,
    ax: Optional[plt.Axes] = None,
    figsize: Tuple[float, float] = (8, 5),
    title: str = "CV for (LR)PC matrix estimation"
) -> plt.Figure:
    """
    Plot the cross-validation loss against eta on a log x axis.

    The selected value is marked with a vertical line. Degenerate candidates
    carry a large penalty and are omitted from the curve.

    Args:
        eta_path: Candidate regularisation values
        cv_error: Accumulated loss for every candidate
        eta: Selected value
        ax: Axes to draw on; a new figure is created when None
        figsize: Figure size for a new figure
        title: Plot title

    Returns:
        Figure containing the plot
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    eta_path = np.asarray(eta_path, dtype=float)
    cv_error = np.asarray(cv_error, dtype=float)
    finite = cv_error < get_config("numerical", "degenerate_loss", 1e12)

    ax.plot(eta_path[finite], cv_error[finite], marker="^", color="tab:red", linestyle="-")
    ax.axvline(eta, color="black", linewidth=1)
    ax.set_xscale("log")
    ax.set_xlabel("eta (log scale)")
    ax.set_ylabel("CV error")
    ax.set_title(title)
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    return fig


def plot_threshold(
    thr_path: Vector,
    edges: Vector,
    thr: float,
    ax: Optional[plt.Axes] = None,
    figsize: Tuple[float, float] = (8, 5),
    title: str = "Edge count against threshold"
) -> plt.Figure:
    """
    Plot the log number of surviving edges against the threshold.

    Args:
        thr_path: Candidate thresholds
        edges: Number of surviving off-diagonal pairs for each threshold
        thr: Selected threshold
        ax: Axes to draw on; a new figure is created when None
        figsize: Figure size for a new figure
        title: Plot title

    Returns:
        Figure containing the plot
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    ax.plot(thr_path, np.log1p(edges), color="tab:blue")
    ax.axvline(thr, color="tab:red", linewidth=1)
    ax.set_xlabel("threshold")
    ax.set_ylabel("log(1 + edges)")
    ax.set_title(title)
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    return fig
