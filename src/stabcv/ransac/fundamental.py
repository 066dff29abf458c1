"""
Fundamental matrix from N >= 8 correspondences (normalized 8-point algorithm).

Epipolar constraint for a correspondence x <-> y (homogeneous):

    y^T F x = 0

which is linear in f = vec(F) (row-major): kron(y, x) . f = 0. One row per
correspondence, f is the smallest right singular vector of the stacked
N x 9 matrix.

Planar scenes and pure translations leave a null space of dimension > 1.
Any vector in it satisfies every epipolar constraint, so one of them is
returned instead of failing.
"""

from __future__ import annotations

import numpy as np

from .errors import DegenerateError
from .normalize import preconditioner_from_points, apply_transformation_to_points
from .types import Points2D, Mat3x3, FloatArray, as_homogeneous, check_correspondences

FUNDAMENTAL_MIN_SAMPLES = 8


def _normalized_solution(pts0: Points2D, pts1: Points2D) -> tuple[Mat3x3, Mat3x3, Mat3x3]:
    T0 = preconditioner_from_points(pts0)
    T1 = preconditioner_from_points(pts1)
    x = as_homogeneous(apply_transformation_to_points(pts0, T0))
    y = as_homogeneous(apply_transformation_to_points(pts1, T1))

    # Row i is kron(y_i, x_i): coefficient of F[j, k] is y_j * x_k
    A = (y[:, :, None] * x[:, None, :]).reshape(-1, 9)

    try:
        _, _, vh = np.linalg.svd(A)
    except np.linalg.LinAlgError as exc:
        raise DegenerateError(f"fundamental svd failed: {exc}") from exc

    return vh[-1].reshape(3, 3), T0, T1


def _denormalize(Fn: Mat3x3, T0: Mat3x3, T1: Mat3x3) -> Mat3x3:
    # y_n^T Fn x_n = y^T (T1^T Fn T0) x
    F = T1.T @ Fn @ T0
    norm = np.linalg.norm(F)
    if not np.isfinite(norm) or norm == 0.0:
        raise DegenerateError("fundamental matrix vanished")
    return F / norm


def enforce_rank2(F: Mat3x3) -> Mat3x3:
    """
    Closest rank-2 matrix in Frobenius norm (zero the smallest singular value).
    """
    u, sv, vh = np.linalg.svd(F)
    sv[2] = 0.0
    return u @ np.diag(sv) @ vh


def fit_fundamental_linear(pts0: Points2D, pts1: Points2D) -> Mat3x3:
    """
    Linear estimate, no rank constraint.
    """
    pts0, pts1 = check_correspondences(pts0, pts1, FUNDAMENTAL_MIN_SAMPLES)
    Fn, T0, T1 = _normalized_solution(pts0, pts1)
    return _denormalize(Fn, T0, T1)


def fit_fundamental_8point(pts0: Points2D, pts1: Points2D) -> Mat3x3:
    """
    Normalized 8-point: linear estimate with the rank-2 constraint enforced
    in conditioned coordinates.
    """
    pts0, pts1 = check_correspondences(pts0, pts1, FUNDAMENTAL_MIN_SAMPLES)
    Fn, T0, T1 = _normalized_solution(pts0, pts1)
    return _denormalize(enforce_rank2(Fn), T0, T1)


def epipolar_residuals(F: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
    """
    Algebraic residual y_i^T F x_i for every correspondence. Shape (N,)
    """
    x = as_homogeneous(pts0)
    y = as_homogeneous(pts1)
    return np.einsum("ni,ij,nj->n", y, F, x)


def sampson_distance(F: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
    """
    First-order geometric error, in pixels:

        d_i = |y^T F x| / sqrt((Fx)_0^2 + (Fx)_1^2 + (F^T y)_0^2 + (F^T y)_1^2)
    """
    x = as_homogeneous(pts0)
    y = as_homogeneous(pts1)
    Fx = x @ F.T
    Fty = y @ F
    num = np.abs(np.sum(y * Fx, axis=1))
    den = np.sqrt(Fx[:, 0] ** 2 + Fx[:, 1] ** 2 + Fty[:, 0] ** 2 + Fty[:, 1] ** 2)
    out = np.full(num.shape, np.inf, dtype=np.float64)
    ok = den > 1e-15
    out[ok] = num[ok] / den[ok]
    return out
