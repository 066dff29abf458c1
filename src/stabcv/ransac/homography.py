"""
Homography (8 dof) from N >= 4 correspondences, normalized DLT.

    x' ~ H x     (equality up to scale)

Each correspondence (x, y) -> (x', y') gives two linear equations in
h = vec(H) (row-major):

    [x, y, 1, 0, 0, 0, -x'x, -x'y, -x'] . h = 0
    [0, 0, 0, x, y, 1, -y'x, -y'y, -y'] . h = 0

Stacking them gives A (2N x 9); h is the right singular vector of the
smallest singular value (min ||A h|| s.t. ||h|| = 1). N == 4 is an exact
solve, N > 4 a total-least-squares fit; the code path is the same.
"""

from __future__ import annotations

import logging

import numpy as np

from .errors import DegenerateError
from .normalize import isotropic_preconditioner_from_points, apply_transformation_to_points, unnormalize_transform
from .types import Points2D, Mat3x3, check_correspondences, ensure_valid_mat3x3

logger = logging.getLogger(__name__)

HOMOGRAPHY_MIN_SAMPLES = 4

# Relative size of the 8th singular value below which the solution is not unique.
RANK_TOL = 1e-10


def _dlt_system(pts0: Points2D, pts1: Points2D) -> np.ndarray:
    n = pts0.shape[0]
    x, y = pts0[:, 0], pts0[:, 1]
    xp, yp = pts1[:, 0], pts1[:, 1]

    A = np.zeros((2 * n, 9), dtype=np.float64)
    A[0::2, 0] = x
    A[0::2, 1] = y
    A[0::2, 2] = 1.0
    A[0::2, 6] = -xp * x
    A[0::2, 7] = -xp * y
    A[0::2, 8] = -xp

    A[1::2, 3] = x
    A[1::2, 4] = y
    A[1::2, 5] = 1.0
    A[1::2, 6] = -yp * x
    A[1::2, 7] = -yp * y
    A[1::2, 8] = -yp
    return A


def fit_homography(pts0: Points2D, pts1: Points2D, rank_tol: float = RANK_TOL) -> Mat3x3:
    """
    Estimate H with x1 ~ H x0.

    Raises DegenerateError when the system has more than a one-dimensional
    null space (collinear / coincident points) or the result is singular.
    """
    pts0, pts1 = check_correspondences(pts0, pts1, HOMOGRAPHY_MIN_SAMPLES)

    # Conditioning is what keeps this solvable on pixel coordinates.
    T0 = isotropic_preconditioner_from_points(pts0)
    T1 = isotropic_preconditioner_from_points(pts1)
    A = _dlt_system(
        apply_transformation_to_points(pts0, T0),
        apply_transformation_to_points(pts1, T1),
    )

    try:
        _, sv, vh = np.linalg.svd(A)
    except np.linalg.LinAlgError as exc:
        raise DegenerateError(f"homography svd failed: {exc}") from exc

    # A unique solution needs rank 8, i.e. the 8th singular value must be non-zero.
    if sv[7] <= rank_tol * sv[0]:
        raise DegenerateError(
            f"homography system is rank deficient (sigma_8 / sigma_1 = {sv[7] / sv[0]:.3e})"
        )

    Hn = vh[-1].reshape(3, 3)
    H = unnormalize_transform(Hn, T0, T1)

    if abs(H[2, 2]) > 1e-12:
        H = H / H[2, 2]
    else:
        logger.debug("homography with H[2,2] ~ 0, normalizing by Frobenius norm")
        H = H / np.linalg.norm(H)

    return ensure_valid_mat3x3(H, "homography")
