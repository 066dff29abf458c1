import numpy as np
import pytest

from stabcv.ransac import DegenerateError, InsufficientDataError
from stabcv.ransac.normalize import (
    apply_transformation_to_points,
    isotropic_preconditioner_from_points,
    mean_and_variance,
    preconditioner_from_points,
    unnormalize_transform,
)


def test_preconditioner_from_points_2xN_example():
    # Column-major point matrix: x on the first row, y on the second.
    points = np.array(
        [[0, 0, 1, 1],
         [0, 2, 1, 3]],
        dtype=np.float64,
    )

    T = preconditioner_from_points(points)
    normalized = apply_transformation_to_points(points, T)
    mean, variance = mean_and_variance(normalized)

    assert mean[0] == pytest.approx(0.0, abs=1e-8)
    assert mean[1] == pytest.approx(0.0, abs=1e-8)
    assert variance[0] == pytest.approx(2.0, abs=1e-8)
    assert variance[1] == pytest.approx(2.0, abs=1e-8)


def test_preconditioner_on_pixel_coordinates(rng):
    points = rng.uniform([0, 0], [1920, 1080], size=(500, 2))

    normalized = apply_transformation_to_points(points, preconditioner_from_points(points))
    mean, variance = mean_and_variance(normalized)

    np.testing.assert_allclose(mean, 0.0, atol=1e-8)
    np.testing.assert_allclose(variance, 2.0, atol=1e-8)


def test_isotropic_preconditioner_mean_squared_distance(rng):
    points = rng.normal([300.0, 200.0], [80.0, 20.0], size=(200, 2))

    T = isotropic_preconditioner_from_points(points)
    normalized = apply_transformation_to_points(points, T)

    np.testing.assert_allclose(normalized.mean(axis=0), 0.0, atol=1e-8)
    assert np.mean(np.sum(normalized ** 2, axis=1)) == pytest.approx(2.0, abs=1e-8)
    # one scale for both axes
    assert T[0, 0] == pytest.approx(T[1, 1])


def test_axis_aligned_line_keeps_unit_scale_on_flat_axis():
    points = np.array([[0.0, 5.0], [1.0, 5.0], [2.0, 5.0], [3.0, 5.0]])

    T = preconditioner_from_points(points)
    normalized = apply_transformation_to_points(points, T)

    assert T[1, 1] == 1.0
    np.testing.assert_allclose(normalized[:, 1], 0.0, atol=1e-12)
    assert np.var(normalized[:, 0]) == pytest.approx(2.0, abs=1e-8)


@pytest.mark.parametrize("conditioner", [preconditioner_from_points, isotropic_preconditioner_from_points])
def test_coincident_points_are_degenerate(conditioner):
    points = np.full((5, 2), 7.5)
    with pytest.raises(DegenerateError):
        conditioner(points)


def test_empty_point_set_is_rejected():
    with pytest.raises(InsufficientDataError):
        preconditioner_from_points(np.zeros((0, 2)))


def test_unnormalize_transform_recovers_pixel_model(rng):
    pts0 = rng.uniform(0, 500, size=(10, 2))
    shift = np.array([[1.0, 0.0, 3.0], [0.0, 1.0, -4.0], [0.0, 0.0, 1.0]])
    pts1 = apply_transformation_to_points(pts0, shift)

    T0 = isotropic_preconditioner_from_points(pts0)
    T1 = isotropic_preconditioner_from_points(pts1)
    # shift in conditioned coordinates
    Mn = T1 @ shift @ np.linalg.inv(T0)

    np.testing.assert_allclose(unnormalize_transform(Mn, T0, T1), shift, atol=1e-10)
