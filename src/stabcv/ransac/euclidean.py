"""
Euclidean (rigid) and similarity models, closed form.

Euclidean, 3 dof:    x' = R x + t
Similarity, 4 dof:   x' = s R x + t

Both are solved in closed form from N >= 2 correspondences (2 is the minimal
sample). With both point sets centered (a_i = x_i - mean0, b_i = x'_i - mean1)
the best rotation comes from the SVD of the 2x2 cross-covariance

    H = sum_i a_i b_i^T = U S V^T,    R = V diag(1, d) U^T

with d = sign(det(U) det(V)) so R is a proper rotation (no reflection).
For the similarity the least-squares scale is

    s = (S_00 + d S_11) / sum_i |a_i|^2

and in both cases t = mean1 - s R mean0.
"""

from __future__ import annotations

import numpy as np

from .errors import DegenerateError
from .types import Points2D, Mat3x3, check_correspondences, ensure_valid_mat3x3

EUCLIDEAN_MIN_SAMPLES = 2
SIMILARITY_MIN_SAMPLES = 2

# Spread (sum of squared centered distances) below this means coincident points.
_EPS_SPREAD = 1e-12


def _procrustes(pts0: Points2D, pts1: Points2D, *, with_scale: bool) -> Mat3x3:
    mean0 = pts0.mean(axis=0)
    mean1 = pts1.mean(axis=0)
    a = pts0 - mean0
    b = pts1 - mean1

    spread0 = float(np.sum(a * a))
    spread1 = float(np.sum(b * b))
    if spread0 < _EPS_SPREAD or spread1 < _EPS_SPREAD:
        # Rotation is undefined when either side collapses to a point.
        raise DegenerateError("coincident points, rotation undefined")

    try:
        u, sv, vh = np.linalg.svd(a.T @ b)
    except np.linalg.LinAlgError as exc:
        raise DegenerateError(f"svd failed: {exc}") from exc

    d = 1.0 if np.linalg.det(u) * np.linalg.det(vh) >= 0.0 else -1.0
    D = np.diag([1.0, d])
    R = vh.T @ D @ u.T

    s = 1.0
    if with_scale:
        s = float(sv[0] + d * sv[1]) / spread0
        if s <= 0.0:
            raise DegenerateError(f"non-positive similarity scale {s}")

    T = np.eye(3, dtype=np.float64)
    T[:2, :2] = s * R
    T[:2, 2] = mean1 - s * (R @ mean0)
    return T


def fit_euclidean(pts0: Points2D, pts1: Points2D) -> Mat3x3:
    """
    Rigid transform (rotation + translation) mapping pts0 onto pts1.

    Exact for 2 correspondences with matching distances; least squares otherwise.
    """
    pts0, pts1 = check_correspondences(pts0, pts1, EUCLIDEAN_MIN_SAMPLES)
    return ensure_valid_mat3x3(_procrustes(pts0, pts1, with_scale=False), "euclidean")


def fit_similarity(pts0: Points2D, pts1: Points2D) -> Mat3x3:
    """
    Similarity transform (rotation + isotropic scale + translation), Umeyama.
    """
    pts0, pts1 = check_correspondences(pts0, pts1, SIMILARITY_MIN_SAMPLES)
    return ensure_valid_mat3x3(_procrustes(pts0, pts1, with_scale=True), "similarity")


def euclidean_from_params(angle: float, tx: float, ty: float, scale: float = 1.0) -> Mat3x3:
    """
    Build [[s cos, -s sin, tx], [s sin, s cos, ty], [0, 0, 1]].
    """
    c = scale * np.cos(angle)
    s = scale * np.sin(angle)
    return np.array(
        [
            [c, -s, tx],
            [s, c, ty],
            [0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )
