import numpy as np
import pytest

from stabcv.ransac.affine import apply_T
from stabcv.ransac.euclidean import euclidean_from_params


# Ground-truth transforms shared by the tests
T_EUCLIDEAN = euclidean_from_params(0.05, 12.0, -7.0)
T_SIMILARITY = euclidean_from_params(-0.12, 25.0, 4.0, scale=1.07)
T_AFFINE = np.array(
    [[1.05, 0.02, 15.0],
     [-0.01, 0.98, -8.0],
     [0.0, 0.0, 1.0]],
    dtype=np.float64,
)
T_HOMOGRAPHY = np.array(
    [[1.02, 0.01, 5.0],
     [-0.015, 0.98, -3.0],
     [1e-5, 2e-5, 1.0]],
    dtype=np.float64,
)


@pytest.fixture
def rng():
    return np.random.default_rng(0)


def make_inliers(T, n, rng, size=(640, 480)):
    pts0 = rng.uniform([0, 0], size, size=(n, 2)).astype(np.float64)
    return pts0, apply_T(T, pts0)


def plant_outliers(T, pts0, pts1, frac, rng, min_offset=20.0, max_offset=80.0):
    """
    Replace a fraction of pts1 by points far (min_offset..max_offset px) from
    where T sends pts0. Returns (pts1_with_outliers, true_inlier_mask).
    """
    n = pts0.shape[0]
    n_out = int(round(frac * n))
    idx = rng.choice(n, size=n_out, replace=False)

    angle = rng.uniform(0.0, 2.0 * np.pi, size=n_out)
    radius = rng.uniform(min_offset, max_offset, size=n_out)
    offset = np.stack([radius * np.cos(angle), radius * np.sin(angle)], axis=1)

    pts1 = pts1.copy()
    pts1[idx] = apply_T(T, pts0[idx]) + offset

    mask = np.ones(n, dtype=bool)
    mask[idx] = False
    return pts1, mask
