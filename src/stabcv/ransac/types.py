"""
Shared typed primitives for the estimation / stabilization pipeline.

Defines:
- Typed NumPy aliases for geometry
    - Points are (N,2) float arrays
    - Transforms are 3x3 homogeneous matrices
- Model capability protocol used by the generic RANSAC loop
- Structured RANSAC result container (model + inliers + stats)
- Small helpers shared by every model family
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, TypeVar, Generic, TypeAlias

import numpy as np
import numpy.typing as npt

from .errors import DegenerateError, InsufficientDataError

# ---------- Numpy typing aliases ----------
# - float64 for geometry / matrices (more stable for linear algebra)
# - bool_ for masks

FloatArray: TypeAlias = npt.NDArray[np.float64]
BoolArray: TypeAlias = npt.NDArray[np.bool_]

# Points in 2D image coordinates, one point per row.
Points2D: TypeAlias = FloatArray      # shape: (N, 2)

# Homogeneous points [x, y, 1] for 3x3 transforms.
PointsHomog: TypeAlias = FloatArray   # shape: (N, 3)

# Boolean inlier mask: True as inlier, False as outlier
Mask2D: TypeAlias = BoolArray         # shape: (N,)

# 3x3 homogeneous transform matrix.
# Euclidean / similarity / affine keep the last row at [0,0,1].
Mat3x3: TypeAlias = FloatArray        # shape: (3, 3)

# Results with a larger condition number are treated as singular.
MAX_CONDITION = 1e12

M = TypeVar("M")


class ModelFitter(Protocol[M]):
    """
    Capability a model family must provide to run inside the generic RANSAC loop.

    RANSAC steps:
    1) Fit a model from a minimal sample (min_samples correspondences)
    2) Score all correspondences with a per-point residual error
    3) Refit from all inliers (least squares)

    Fit methods raise DegenerateError for unusable samples and
    InsufficientDataError when given fewer than min_samples points.
    """

    min_samples: int

    def fit_minimal(self, pts0: Points2D, pts1: Points2D) -> M:
        ...

    def fit_least_squares(self, pts0: Points2D, pts1: Points2D) -> M:
        ...

    def residuals(self, model: M, pts0: Points2D, pts1: Points2D) -> FloatArray:
        """
        Return a vector of residual errors, one per correspondence.
        Shape: (N,). Smaller = better.
        """
        ...


# ---------- RANSAC output container ----------
@dataclass(frozen=True)
class RansacResult(Generic[M]):
    model: M            # polished model (least squares over the inliers)
    inliers: Mask2D     # boolean mask of inliers of the best candidate
    num_inliers: int    # count of True values in inliers
    rms_error: float    # RMS error of inliers under the final model
    iterations: int     # how many RANSAC iterations were actually run
    threshold: float    # the inlier threshold tau used

    @property
    def inlier_ratio(self) -> float:
        return self.num_inliers / max(1, int(self.inliers.shape[0]))


# ---------- Helper Functions ----------
def as_points(pts) -> Points2D:
    """
    Coerce input to a float64 (N,2) array.

    A (2,N) array with N != 2 is accepted and transposed, so column-major point
    matrices coming from other tools can be passed straight in.
    """
    arr = np.asarray(pts, dtype=np.float64)
    if arr.ndim == 2 and arr.shape[0] == 2 and arr.shape[1] != 2:
        arr = arr.T
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"Expected points shape (N, 2) but got {arr.shape}")
    return np.ascontiguousarray(arr)


def check_correspondences(pts0: Points2D, pts1: Points2D, min_samples: int) -> tuple[Points2D, Points2D]:
    """
    Validate a correspondence set and return both arrays as float64 (N,2).
    """
    pts0 = as_points(pts0)
    pts1 = as_points(pts1)
    if pts0.shape != pts1.shape:
        raise ValueError(f"pts0 and pts1 must have same shape, got {pts0.shape} vs {pts1.shape}")
    if pts0.shape[0] < min_samples:
        raise InsufficientDataError(min_samples, pts0.shape[0])
    return pts0, pts1


def as_homogeneous(pts: Points2D) -> PointsHomog:
    """
    Convert (N,2) points -> (N,3) homogeneous points: [x, y, 1].
    """
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"Expected points shape (N, 2) but got {pts.shape}")

    ones = np.ones((pts.shape[0], 1), dtype=np.float64)
    return np.hstack([pts.astype(np.float64), ones])


def is_valid_mat3x3(T: Mat3x3) -> bool:
    """
    Verify a 3x3 transform matrix: right shape, finite, and not (near) singular.
    """
    if not (isinstance(T, np.ndarray) and T.shape == (3, 3) and np.isfinite(T).all()):
        return False
    return bool(np.linalg.cond(T) < MAX_CONDITION)


def ensure_valid_mat3x3(T: Mat3x3, what: str = "transform") -> Mat3x3:
    if not is_valid_mat3x3(T):
        raise DegenerateError(f"estimated {what} is singular or not finite")
    return T


def rms(err: FloatArray) -> float:
    if err.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(err * err)))
