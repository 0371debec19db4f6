'''
Result containers for the LRPC Toolbox.

Every estimator returns one of the frozen dataclasses defined here. Array
fields are copied and marked read-only on construction, so a returned result
cannot be modified in place by the caller or by a later estimator call.
'''

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from lrpc.core.types import Matrix, Vector


def _freeze(array: Optional[np.ndarray]) -> Optional[np.ndarray]:
    """Return a read-only float copy of array (None passes through)."""
    if array is None:
        return None
    frozen = np.array(array, dtype=float, copy=True)
    frozen.setflags(write=False)
    return frozen


class _FrozenArrays:
    """Mixin that freezes every ndarray field after dataclass initialisation."""

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, np.ndarray):
                object.__setattr__(self, f.name, _freeze(value))

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result to a dictionary with arrays as nested lists."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, np.ndarray):
                value = value.tolist()
            elif f.name == "figure":
                continue
            result[f.name] = value
        return result


@dataclass(frozen=True)
class InverseEstimate(_FrozenArrays):
    """
    Output of the direct and adaptive inverse estimators.

    Attributes:
        matrix: Symmetrised (and optionally repaired) p x p inverse estimate
        eta: Regularisation value used for the final columns
        symmetric: Symmetrisation rule applied after assembly
        adaptive: Whether the two-stage adaptive procedure produced the estimate
        pilot: Stage-1 pilot diagonal (adaptive estimates only)
    """
    matrix: Matrix
    eta: float
    symmetric: str
    adaptive: bool = False
    pilot: Optional[Vector] = None


@dataclass(frozen=True)
class CrossValidationResult(_FrozenArrays):
    """
    Output of the regularisation-path cross-validator.

    Attributes:
        eta: Selected regularisation value (first minimiser of the loss)
        cv_error: Loss accumulated over folds for every candidate
        eta_path: Candidate regularisation values, in decreasing order
        target: Validation target ('acv' or 'spec')
        n_folds: Number of folds used
        figure: Diagnostic loss curve, when requested
    """
    eta: float
    cv_error: Vector
    eta_path: Vector
    target: str = "acv"
    n_folds: int = 1
    figure: Optional[Any] = field(default=None, compare=False, repr=False)

    @property
    def index(self) -> int:
        """Position of the selected value on the path."""
        return int(np.argmin(self.cv_error))

    def to_pandas(self) -> pd.DataFrame:
        """Loss curve as a DataFrame indexed by eta."""
        return pd.DataFrame(
            {"cv_error": self.cv_error},
            index=pd.Index(self.eta_path, name="eta")
        )


@dataclass(frozen=True)
class ThresholdResult(_FrozenArrays):
    """
    Output of a threshold operator.

    Attributes:
        thr_mat: Thresholded matrix
        thr: Selected threshold
        thr_path: Candidate thresholds
        edges: Number of surviving off-diagonal pairs for every candidate
        figure: Diagnostic threshold curve, when requested
    """
    thr_mat: Matrix
    thr: float
    thr_path: Optional[Vector] = None
    edges: Optional[Vector] = None
    figure: Optional[Any] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class LRPCResult(_FrozenArrays):
    """
    Output bundle of the long-run partial-correlation assembler.

    Attributes:
        delta: Estimated inverse of the innovation covariance matrix
        omega: Estimated inverse of the long-run covariance matrix
        pc: Innovation partial correlation matrix
        lrpc: Long-run partial correlation matrix
        eta: Regularisation value used
        adaptive: Whether the adaptive estimator was used
        cv: Cross-validation output, when eta was selected by cross-validation
        delta_threshold: Threshold output for delta, when thresholding was applied
        omega_threshold: Threshold output for omega, when thresholding was applied
    """
    delta: Matrix
    omega: Matrix
    pc: Matrix
    lrpc: Matrix
    eta: float
    adaptive: bool = False
    cv: Optional[CrossValidationResult] = field(default=None, compare=False)
    delta_threshold: Optional[ThresholdResult] = field(default=None, compare=False)
    omega_threshold: Optional[ThresholdResult] = field(default=None, compare=False)

    def to_pandas(self, names: Optional[Sequence[str]] = None) -> Dict[str, pd.DataFrame]:
        """
        Convert the matrices to labelled DataFrames.

        Args:
            names: Variable names; defaults to 'x0', 'x1', ...

        Returns:
            Dict mapping 'delta', 'omega', 'pc' and 'lrpc' to DataFrames
        """
        p = self.delta.shape[0]
        if names is None:
            names = [f"x{i}" for i in range(p)]
        names = list(names)
        if len(names) != p:
            raise ValueError(f"Expected {p} names, got {len(names)}")
        return {
            key: pd.DataFrame(getattr(self, key), index=names, columns=names)
            for key in ("delta", "omega", "pc", "lrpc")
        }

    def summary(self) -> str:
        """Generate a text summary of the estimate."""
        p = self.delta.shape[0]
        header = "Long-run partial correlation estimate\n"
        header += "=" * (len(header) - 1) + "\n\n"

        info = f"Number of variables (p): {p}\n"
        info += f"Regularisation (eta): {self.eta:.6g}\n"
        info += f"Adaptive estimator: {'Yes' if self.adaptive else 'No'}\n"
        if self.cv is not None:
            info += f"Selected by {self.cv.n_folds}-fold cross-validation over {len(self.cv.eta_path)} values\n"

        off_diag = ~np.eye(p, dtype=bool)
        for label, mat in (("pc", self.pc), ("lrpc", self.lrpc)):
            edges = int(np.count_nonzero(mat[off_diag]) // 2)
            info += f"Non-zero {label} pairs: {edges} of {p * (p - 1) // 2}\n"

        return header + info
