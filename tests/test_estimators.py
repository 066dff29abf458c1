import numpy as np
import pytest

from stabcv.ransac import (
    DegenerateError,
    InsufficientDataError,
    apply_T,
    epipolar_residuals,
    fit_affine_least_squares,
    fit_affine_minimal,
    fit_euclidean,
    fit_fundamental_8point,
    fit_fundamental_linear,
    fit_homography,
    fit_similarity,
    residuals_L2,
)

from conftest import T_AFFINE, T_EUCLIDEAN, T_HOMOGRAPHY, T_SIMILARITY, make_inliers


def _two_offset_rows():
    x1 = np.array(
        [[0, 0, 0, 1, 1, 1, 2, 2],
         [0, 1, 2, 0, 1, 2, 0, 1]],
        dtype=np.float64,
    ).T
    x2 = x1.copy()
    x2[:, 1] += 1.0
    return x1, x2


# ---------- Fundamental (8-point sibling) ----------
@pytest.mark.parametrize("fit", [fit_fundamental_linear, fit_fundamental_8point])
def test_fundamental_two_offset_rows(fit):
    x1, x2 = _two_offset_rows()

    F = fit(x1, x2)

    y_F_x = epipolar_residuals(F, x1, x2)
    np.testing.assert_allclose(y_F_x, 0.0, atol=1e-8)
    assert np.linalg.norm(F) == pytest.approx(1.0)


def test_fundamental_8point_is_rank_two(rng):
    # Two views of a 3D point cloud: x ~ [I|0] X, y ~ [R|t] X
    X = rng.uniform([-1, -1, 4], [1, 1, 8], size=(30, 3))
    angle = 0.1
    R = np.array([[np.cos(angle), 0, np.sin(angle)], [0, 1, 0], [-np.sin(angle), 0, np.cos(angle)]])
    t = np.array([0.5, 0.05, 0.1])

    x = X[:, :2] / X[:, 2:3]
    Y = X @ R.T + t
    y = Y[:, :2] / Y[:, 2:3]

    F = fit_fundamental_8point(x, y)

    assert np.linalg.matrix_rank(F, tol=1e-10) == 2
    np.testing.assert_allclose(epipolar_residuals(F, x, y), 0.0, atol=1e-8)


def test_fundamental_needs_eight_points():
    x1, x2 = _two_offset_rows()
    with pytest.raises(InsufficientDataError):
        fit_fundamental_8point(x1[:7], x2[:7])


# ---------- Euclidean / similarity ----------
def test_euclidean_from_two_points():
    pts0 = np.array([[10.0, 20.0], [110.0, 60.0]])
    pts1 = apply_T(T_EUCLIDEAN, pts0)

    E = fit_euclidean(pts0, pts1)

    np.testing.assert_allclose(E, T_EUCLIDEAN, atol=1e-10)
    np.testing.assert_array_equal(E[2], [0.0, 0.0, 1.0])


def test_euclidean_least_squares_many_points(rng):
    pts0, pts1 = make_inliers(T_EUCLIDEAN, 50, rng)

    E = fit_euclidean(pts0, pts1)

    assert np.max(residuals_L2(E, pts0, pts1)) <= 1e-8
    # proper rotation
    assert np.linalg.det(E[:2, :2]) == pytest.approx(1.0)


def test_similarity_recovers_scale(rng):
    pts0, pts1 = make_inliers(T_SIMILARITY, 2, rng)

    S = fit_similarity(pts0, pts1)

    np.testing.assert_allclose(S, T_SIMILARITY, atol=1e-9)
    assert np.sqrt(np.linalg.det(S[:2, :2])) == pytest.approx(1.07)


def test_euclidean_ignores_scale_change(rng):
    pts0, pts1 = make_inliers(T_SIMILARITY, 20, rng)

    E = fit_euclidean(pts0, pts1)

    assert np.linalg.det(E[:2, :2]) == pytest.approx(1.0)


@pytest.mark.parametrize("fit", [fit_euclidean, fit_similarity])
def test_closed_form_rejects_coincident_points(fit):
    pts0 = np.array([[5.0, 5.0], [5.0, 5.0], [5.0, 5.0]])
    pts1 = np.array([[1.0, 1.0], [2.0, 3.0], [4.0, 0.0]])
    with pytest.raises(DegenerateError):
        fit(pts0, pts1)


# ---------- Affine ----------
def test_affine_minimal_exact():
    pts0 = np.array([[0.0, 0.0], [100.0, 0.0], [0.0, 50.0]])
    pts1 = apply_T(T_AFFINE, pts0)

    A = fit_affine_minimal(pts0, pts1)

    np.testing.assert_allclose(A, T_AFFINE, atol=1e-10)


def test_affine_minimal_rejects_collinear_triplet():
    pts0 = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0]])
    pts1 = apply_T(T_AFFINE, pts0)
    with pytest.raises(DegenerateError):
        fit_affine_minimal(pts0, pts1)


def test_affine_least_squares(rng):
    pts0, pts1 = make_inliers(T_AFFINE, 100, rng)

    A = fit_affine_least_squares(pts0, pts1)

    np.testing.assert_allclose(A, T_AFFINE, atol=1e-8)
    np.testing.assert_array_equal(A[2], [0.0, 0.0, 1.0])


def test_affine_least_squares_rejects_collinear_points():
    pts0 = np.array([[0.0, 0.0], [1.0, 2.0], [2.0, 4.0], [3.0, 6.0]])
    pts1 = apply_T(T_AFFINE, pts0)
    with pytest.raises(DegenerateError):
        fit_affine_least_squares(pts0, pts1)


# ---------- Homography ----------
def test_homography_four_points_exact():
    pts0 = np.array([[0.0, 0.0], [640.0, 0.0], [640.0, 480.0], [0.0, 480.0]])
    pts1 = apply_T(T_HOMOGRAPHY, pts0)

    H = fit_homography(pts0, pts1)

    assert np.max(residuals_L2(H, pts0, pts1)) <= 1e-8
    np.testing.assert_allclose(H, T_HOMOGRAPHY, rtol=1e-8, atol=1e-10)
    assert H[2, 2] == 1.0


def test_homography_overdetermined(rng):
    pts0, pts1 = make_inliers(T_HOMOGRAPHY, 200, rng)

    H = fit_homography(pts0, pts1)

    assert np.max(residuals_L2(H, pts0, pts1)) <= 1e-8


def test_homography_rejects_collinear_points():
    xs = np.arange(6, dtype=np.float64)
    pts0 = np.stack([10.0 * xs, 3.0 * xs + 1.0], axis=1)
    pts1 = apply_T(T_HOMOGRAPHY, pts0)
    with pytest.raises(DegenerateError):
        fit_homography(pts0, pts1)


def test_homography_rejects_coincident_points():
    pts0 = np.full((4, 2), 3.0)
    pts1 = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
    with pytest.raises(DegenerateError):
        fit_homography(pts0, pts1)


# ---------- Minimal cardinality ----------
@pytest.mark.parametrize(
    "fit, n",
    [
        (fit_euclidean, 1),
        (fit_similarity, 1),
        (fit_affine_least_squares, 2),
        (fit_affine_minimal, 2),
        (fit_homography, 3),
        (fit_fundamental_linear, 7),
    ],
)
def test_below_minimal_cardinality_raises(fit, n, rng):
    pts0 = rng.uniform(0, 100, size=(n, 2))
    pts1 = rng.uniform(0, 100, size=(n, 2))
    with pytest.raises(InsufficientDataError):
        fit(pts0, pts1)


def test_shape_mismatch_is_value_error():
    with pytest.raises(ValueError):
        fit_homography(np.zeros((5, 2)), np.zeros((4, 2)))


def test_residuals_of_point_sent_to_infinity_are_inf():
    H = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 0.0, 0.0]])
    pts = np.array([[0.0, 5.0], [2.0, 1.0]])

    err = residuals_L2(H, pts, pts)

    assert np.isinf(err[0])
    assert np.isfinite(err[1])
