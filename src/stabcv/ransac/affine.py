"""
Affine model utilities (3x3 homogeneous form).

We estimate an affine transform T such that:

    [x', y', 1]^T  ≈  T @ [x, y, 1]^T

where:

    T = [[a, b, tx],
         [c, d, ty],
         [0, 0,  1]]

Unknowns are 6 parameters: a, b, tx, c, d, ty.

This module also holds the transfer helpers (apply_T, residuals_L2) shared by
every 3x3 model family: they divide by w, so they are valid for homographies
as well.
"""

from __future__ import annotations

import numpy as np

from .errors import DegenerateError
from .normalize import isotropic_preconditioner_from_points, apply_transformation_to_points, unnormalize_transform
from .types import (
    Points2D, PointsHomog, Mat3x3, FloatArray,
    as_homogeneous, check_correspondences, ensure_valid_mat3x3)

AFFINE_MIN_SAMPLES = 3

# |w| below this means the point is sent to infinity.
_EPS_W = 1e-12


# ---------- Degeneracy Check Helpers ----------
def _triangle_area(p1: np.ndarray, p2: np.ndarray, p3: np.ndarray) -> float:
    """
    Return 2x the triangle area formed by (p1, p2, p3).

        area2 = |(p2 - p1) x (p3 - p1)|

    If area2 is near 0, the three points are collinear (degenerate for affine minimal fit).
    """
    u = p2 - p1
    v = p3 - p1
    return float(abs(u[0] * v[1] - u[1] * v[0]))


def _is_degenerate_triplet(pts: Points2D, eps_area: float = 1e-6) -> bool:
    """
    Check whether 3 points (shape (3,2)) are nearly collinear.
    """
    if pts.shape != (3, 2):
        raise ValueError(f"Expected (3,2) triplet, got {pts.shape}")

    area = _triangle_area(pts[0], pts[1], pts[2])
    return area < eps_area


# ---------- Affine Fitting ----------
def _theta_to_mat3x3(theta: np.ndarray) -> Mat3x3:
    """
    Convert parameter vector theta = [a, b, tx, c, d, ty] into a 3x3 affine matrix.
    """
    a, b, tx, c, d, ty = map(float, theta.tolist())
    return np.array(
        [
            [a, b, tx],
            [c, d, ty],
            [0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )


def _affine_system(pts0: Points2D, pts1: Points2D) -> tuple[np.ndarray, np.ndarray]:
    """
    Build A theta = b for the correspondences:

        x' = a*x + b*y + tx   ->  [x, y, 1, 0, 0, 0]
        y' = c*x + d*y + ty   ->  [0, 0, 0, x, y, 1]

    Each point gives 2 rows.
    """
    n = pts0.shape[0]
    A = np.zeros((2 * n, 6), dtype=np.float64)
    b_vec = np.zeros((2 * n,), dtype=np.float64)

    A[0::2, 0:2] = pts0
    A[0::2, 2] = 1.0
    A[1::2, 3:5] = pts0
    A[1::2, 5] = 1.0

    b_vec[0::2] = pts1[:, 0]
    b_vec[1::2] = pts1[:, 1]
    return A, b_vec


def fit_affine_minimal(pts0: Points2D, pts1: Points2D, eps_area: float = 1e-6) -> Mat3x3:
    """
    Fit affine transform from exactly 3 point correspondences.

    pts0: (3,2) source points
    pts1: (3,2) target points

    Raises DegenerateError when either triplet is (nearly) collinear.
    """
    pts0, pts1 = check_correspondences(pts0, pts1, AFFINE_MIN_SAMPLES)
    if pts0.shape != (3, 2):
        raise ValueError(f"fit_affine_minimal expects (3,2) inputs, got {pts0.shape}")

    # If a triplet is collinear, the affine solve is not uniquely determined.
    if _is_degenerate_triplet(pts0, eps_area) or _is_degenerate_triplet(pts1, eps_area=eps_area):
        raise DegenerateError("collinear affine sample")

    A, b_vec = _affine_system(pts0, pts1)

    # A is square (6x6) here.
    try:
        theta = np.linalg.solve(A, b_vec)
    except np.linalg.LinAlgError as exc:
        raise DegenerateError(f"affine solve failed: {exc}") from exc

    return ensure_valid_mat3x3(_theta_to_mat3x3(theta), "affine")


def fit_affine_least_squares(pts0: Points2D, pts1: Points2D) -> Mat3x3:
    """
    Fit affine transform from N >= 3 correspondences using least squares.

    The solve runs on isotropically conditioned coordinates and is mapped back,
    so pixel-sized inputs do not hurt the rank test. Conditioning transforms are
    themselves affine, so the last row stays [0, 0, 1].
    """
    pts0, pts1 = check_correspondences(pts0, pts1, AFFINE_MIN_SAMPLES)

    T0 = isotropic_preconditioner_from_points(pts0)
    T1 = isotropic_preconditioner_from_points(pts1)
    A, bvec = _affine_system(
        apply_transformation_to_points(pts0, T0),
        apply_transformation_to_points(pts1, T1),
    )

    try:
        theta, _, rank, _ = np.linalg.lstsq(A, bvec, rcond=None)
    except np.linalg.LinAlgError as exc:
        raise DegenerateError(f"affine least squares failed: {exc}") from exc

    # 6 unknowns need 6 independent constraints. Collinear or repeated points
    # leave the shear/rotation part unobserved.
    if rank < 6:
        raise DegenerateError(f"affine system has rank {rank} < 6")

    T = unnormalize_transform(_theta_to_mat3x3(theta), T0, T1)
    T[2, :] = (0.0, 0.0, 1.0)
    return ensure_valid_mat3x3(T, "affine")


# ---------- Apply transform + residuals ----------
def apply_T(T: Mat3x3, pts: Points2D) -> Points2D:
    """
    Apply a 3x3 transform to (N,2) points, returning (N,2) points.

        [x', y', w]^T = T @ [x, y, 1]^T,   result = (x'/w, y'/w)

    For affine-family models w is always 1. Points sent to infinity come
    back as inf.
    """
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"Expected pts shape (N,2), got {pts.shape}")
    if T.shape != (3, 3):
        raise ValueError(f"Expected T shape (3,3), got {T.shape}")

    ph: PointsHomog = as_homogeneous(pts)

    # Each point is a row, so multiply by T^T
    ph_t = ph @ T.T

    w = ph_t[:, 2:3]
    out = np.full((pts.shape[0], 2), np.inf, dtype=np.float64)
    finite = np.abs(w[:, 0]) > _EPS_W
    out[finite] = ph_t[finite, :2] / w[finite]
    return out


def residuals_L2(T: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
    """
    Compute per-point forward transfer error in pixels:

        e_i = || apply_T(T, pts0[i]) - pts1[i] ||_2

    Returns shape (N,)
    """
    if pts0.shape != pts1.shape:
        raise ValueError(f"pts0 and pts1 must have same shape, got {pts0.shape} vs {pts1.shape}")
    predicted = apply_T(T, pts0)
    with np.errstate(invalid="ignore"):
        diff = predicted - pts1.astype(np.float64)
        err = np.linalg.norm(diff, axis=1)
    err[~np.isfinite(err)] = np.inf
    return err.astype(np.float64)

