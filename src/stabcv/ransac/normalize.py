"""
Point conditioning ("normalization") for linear estimators.

Unnormalized pixel coordinates (values in the hundreds, a homogeneous 1 next to
them) make the DLT / 8-point systems badly conditioned. Before building the
system we move the centroid to the origin and rescale:

    T = diag(sx, sy, 1) @ [[1, 0, -cx],
                           [0, 1, -cy],
                           [0, 0,   1]]

Two flavours:
- preconditioner_from_points: per-axis scale, variance along each axis == 2
- isotropic_preconditioner_from_points: one scale, mean squared distance
  from the origin == 2 (keeps angles, used by the homography DLT)

A model M estimated between conditioned points maps back to pixel
coordinates as inv(T1) @ M @ T0 (see unnormalize_transform).
"""

from __future__ import annotations

import numpy as np

from .errors import DegenerateError, InsufficientDataError
from .types import Points2D, Mat3x3, FloatArray, as_points, as_homogeneous

# Target spread after conditioning.
TARGET_VARIANCE = 2.0

# Variances below this are treated as zero.
_EPS_VARIANCE = 1e-12


def mean_and_variance(points: Points2D) -> tuple[FloatArray, FloatArray]:
    """
    Per-axis mean and (population) variance of an (N,2) point set.
    """
    pts = as_points(points)
    if pts.shape[0] < 1:
        raise InsufficientDataError(1, 0, what="points")
    mean = pts.mean(axis=0)
    variance = ((pts - mean) ** 2).mean(axis=0)
    return mean, variance


def _make_conditioning(cx: float, cy: float, sx: float, sy: float) -> Mat3x3:
    return np.array(
        [
            [sx, 0.0, -sx * cx],
            [0.0, sy, -sy * cy],
            [0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )


def preconditioner_from_points(points: Points2D) -> Mat3x3:
    """
    Conditioning transform with an independent scale per axis.

    After applying it, the points have centroid (0, 0) and variance 2 along x
    and along y. An axis with no spread keeps scale 1; if neither axis has any
    spread the points are coincident and no scale exists.
    """
    mean, variance = mean_and_variance(points)
    if np.all(variance < _EPS_VARIANCE):
        raise DegenerateError("cannot condition coincident points")

    factors = np.ones(2, dtype=np.float64)
    spread = variance >= _EPS_VARIANCE
    factors[spread] = np.sqrt(TARGET_VARIANCE / variance[spread])
    return _make_conditioning(float(mean[0]), float(mean[1]), float(factors[0]), float(factors[1]))


def isotropic_preconditioner_from_points(points: Points2D) -> Mat3x3:
    """
    Conditioning transform with one uniform scale s.

    Mean squared distance of the conditioned points from the origin is 2,
    i.e. s = sqrt(2 / (var_x + var_y)).
    """
    mean, variance = mean_and_variance(points)
    mean_sq_dist = float(variance.sum())
    if mean_sq_dist < _EPS_VARIANCE:
        raise DegenerateError("cannot condition coincident points")

    s = float(np.sqrt(TARGET_VARIANCE / mean_sq_dist))
    return _make_conditioning(float(mean[0]), float(mean[1]), s, s)


def apply_transformation_to_points(points: Points2D, T: Mat3x3) -> Points2D:
    """
    Apply a 3x3 transform to (N,2) points, dividing by the homogeneous w.
    """
    if T.shape != (3, 3):
        raise ValueError(f"Expected T shape (3,3), got {T.shape}")
    ph = as_homogeneous(as_points(points)) @ T.T
    return ph[:, :2] / ph[:, 2:3]


def unnormalize_transform(model_normalized: Mat3x3, T0: Mat3x3, T1: Mat3x3) -> Mat3x3:
    """
    Bring a model fitted on conditioned points back to pixel coordinates.

    If  x1_n = M_n @ x0_n  with  x0_n = T0 @ x0  and  x1_n = T1 @ x1, then
        x1 = inv(T1) @ M_n @ T0 @ x0
    """
    return np.linalg.inv(T1) @ model_normalized @ T0
