import numpy as np
import pytest

from stabcv.matching import MatchGraph
from stabcv.ransac.affine import apply_T
from stabcv.ransac.euclidean import euclidean_from_params
from stabcv.stabilize import (
    ChainGapError,
    StabilizeConfig,
    compose_chain,
    compose_cumulative,
    cumulative_transforms,
)

T_STEP = euclidean_from_params(0.01, 3.0, -2.0)


def _sequence_graph(num_images, rng, n_tracks=40, step=T_STEP):
    """
    Tracks moving by `step` between consecutive frames.
    """
    graph = MatchGraph()
    pts = rng.uniform([50, 50], [590, 430], size=(n_tracks, 2))
    for image in range(num_images):
        for track, (x, y) in enumerate(pts):
            graph.add(image, track, x, y)
        pts = apply_T(step, pts)
    return graph


def test_compose_cumulative_of_two_identical_transforms():
    T = np.array([[1.1, 0.2, 5.0], [-0.1, 0.9, 2.0], [0.0, 0.0, 1.0]])

    cumulative = compose_cumulative([T, T])

    assert len(cumulative) == 3
    np.testing.assert_array_equal(cumulative[0], np.eye(3))
    np.testing.assert_allclose(cumulative[1], np.linalg.inv(T), atol=1e-12)
    np.testing.assert_allclose(cumulative[2], np.linalg.inv(T) @ np.linalg.inv(T), atol=1e-12)
    np.testing.assert_allclose(cumulative[2], np.linalg.inv(T @ T), atol=1e-12)


@pytest.mark.parametrize("model", ["euclidean", "similarity", "affine", "homography"])
def test_chain_brings_every_frame_back_to_the_first(model, rng):
    graph = _sequence_graph(5, rng)

    chain = compose_chain(graph, range(5), StabilizeConfig(model=model))
    cumulative = cumulative_transforms(chain)

    assert len(chain) == 4
    assert not chain.gaps
    for link in chain.links:
        np.testing.assert_allclose(link.transform, T_STEP, atol=1e-6)

    # a point of frame i maps back onto its frame-0 position
    pts0, _ = graph.pairwise_correspondences(0, 4)
    _, pts4 = graph.pairwise_correspondences(0, 4)
    np.testing.assert_allclose(apply_T(cumulative[4], pts4), pts0, atol=1e-6)


def test_chain_needs_two_images(rng):
    graph = _sequence_graph(1, rng)
    with pytest.raises(ValueError):
        compose_chain(graph, [0])


def test_parallel_estimation_matches_sequential(rng):
    graph = _sequence_graph(6, rng)

    seq = compose_chain(graph, range(6), StabilizeConfig(model="homography", seed=3))
    par = compose_chain(graph, range(6), StabilizeConfig(model="homography", seed=3, workers=3))

    for a, b in zip(seq.links, par.links):
        np.testing.assert_array_equal(a.transform, b.transform)
        assert a.result.iterations == b.result.iterations


def _graph_with_gap(rng):
    """
    4 images; pair (1, 2) shares a single track only.
    """
    graph = MatchGraph()
    a = rng.uniform([50, 50], [590, 430], size=(30, 2))
    b = rng.uniform([50, 50], [590, 430], size=(30, 2))
    for track, (x, y) in enumerate(a):
        graph.add(0, track, x, y)
        graph.add(1, track, *apply_T(T_STEP, np.array([[x, y]]))[0])
    for track, (x, y) in enumerate(b, start=100):
        graph.add(2, track, x, y)
        graph.add(3, track, *apply_T(T_STEP, np.array([[x, y]]))[0])
    graph.add(2, 0, 10.0, 10.0)
    return graph


def test_gap_is_recorded_not_fatal(rng):
    chain = compose_chain(_graph_with_gap(rng), range(4), StabilizeConfig(model="euclidean"))

    assert [link.ok for link in chain.links] == [True, False, True]
    gap = chain.gaps[0]
    assert gap.index == 1
    assert gap.num_correspondences == 1
    assert "InsufficientDataError" in gap.reason
    assert chain.transforms[1] is None


def test_gap_policy_identity(rng):
    chain = compose_chain(_graph_with_gap(rng), range(4), StabilizeConfig(model="euclidean"))

    cumulative = cumulative_transforms(chain, "identity")

    assert len(cumulative) == 4
    np.testing.assert_allclose(cumulative[2], cumulative[1])
    np.testing.assert_allclose(cumulative[3], np.linalg.inv(T_STEP) @ cumulative[2], atol=1e-6)


def test_gap_policy_skip(rng):
    chain = compose_chain(_graph_with_gap(rng), range(4), StabilizeConfig(model="euclidean"))

    cumulative = cumulative_transforms(chain, "skip")

    assert cumulative[0] is not None and cumulative[1] is not None
    assert cumulative[2] is None and cumulative[3] is None


def test_gap_policy_raise(rng):
    chain = compose_chain(_graph_with_gap(rng), range(4), StabilizeConfig(model="euclidean"))

    with pytest.raises(ChainGapError) as info:
        cumulative_transforms(chain, "raise")
    assert info.value.index == 1


def test_unknown_gap_policy(rng):
    chain = compose_chain(_sequence_graph(2, rng), range(2))
    with pytest.raises(ValueError):
        cumulative_transforms(chain, "interpolate")


def test_config_validation():
    assert StabilizeConfig(model=3).model == "homography"
    with pytest.raises(ValueError):
        StabilizeConfig(tau=-1.0)
    with pytest.raises(ValueError):
        StabilizeConfig(gap_policy="bridge")
    with pytest.raises(ValueError):
        StabilizeConfig(workers=0)
