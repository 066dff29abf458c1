"""
Chain composer: pairwise transforms over an ordered image sequence, folded
into per-frame cumulative transforms relative to the first frame.

For consecutive images (i, i+1) RANSAC gives T[i] such that

    q_{i+1} = T[i] q_i

(q_k: position of a feature in image k). To bring frame i back onto frame 0
we undo each pairwise motion in turn:

    C[0] = I
    C[i] = inv(T[i-1]) @ C[i-1]          ->  q_0 = C[i] q_i

Only a fixed camera is supported: the whole sequence is mapped onto frame 0.

Pair estimation is independent per pair (own correspondences, own RNG), so it
can run in a thread pool. The fold always runs afterwards, left to right.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..matching.matches import MatchGraph
from ..ransac.core import ransac
from ..ransac.errors import EstimationError, DegenerateError
from ..ransac.models import make_fitter
from ..ransac.types import Mat3x3, RansacResult, ensure_valid_mat3x3
from .config import StabilizeConfig, GapPolicy, GAP_POLICIES

logger = logging.getLogger(__name__)


class ChainGapError(EstimationError):
    def __init__(self, index: int, image0: int, image1: int, reason: str) -> None:
        self.index = int(index)
        super().__init__(f"no transform for link {index} ({image0} -> {image1}): {reason}")


@dataclass(frozen=True)
class ChainLink:
    """
    One consecutive pair. transform is None for a gap, with the reason set.
    """
    index: int
    image0: int
    image1: int
    num_correspondences: int
    transform: Optional[Mat3x3] = None
    result: Optional[RansacResult[Mat3x3]] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.transform is not None


@dataclass(frozen=True)
class TransformChain:
    image_ids: tuple[int, ...]
    links: tuple[ChainLink, ...]
    model: str

    def __len__(self) -> int:
        return len(self.links)

    @property
    def transforms(self) -> list[Optional[Mat3x3]]:
        return [link.transform for link in self.links]

    @property
    def gaps(self) -> list[ChainLink]:
        return [link for link in self.links if not link.ok]


def _estimate_link(
        graph: MatchGraph,
        index: int,
        image0: int,
        image1: int,
        config: StabilizeConfig,
        rng: np.random.Generator,
) -> ChainLink:
    pts0, pts1 = graph.pairwise_correspondences(image0, image1)
    n = int(pts0.shape[0])
    try:
        result = ransac(
            make_fitter(config.model),
            pts0,
            pts1,
            tau=config.tau,
            outliers_prob=config.outliers_prob,
            max_iters=config.max_iters,
            rng=rng,
        )
    except EstimationError as exc:
        logger.warning("pair %d (%d -> %d) skipped: %s", index, image0, image1, exc)
        return ChainLink(index, image0, image1, n, reason=f"{type(exc).__name__}: {exc}")

    logger.debug(
        "pair %d (%d -> %d): inliers=%d/%d (%.1f%%) rms=%.4f iterations=%d\n%s",
        index, image0, image1, result.num_inliers, n, 100.0 * result.inlier_ratio,
        result.rms_error, result.iterations, result.model,
    )
    return ChainLink(index, image0, image1, n, transform=result.model, result=result)


def compose_chain(
        graph: MatchGraph,
        image_ids: Sequence[int],
        config: StabilizeConfig = StabilizeConfig(),
) -> TransformChain:
    """
    Estimate one transform per consecutive pair of image_ids (in the given order).

    Per-pair failures become gaps (ChainLink.transform is None), they never
    abort the chain. Fewer than two images is a caller error.
    """
    ids = tuple(int(i) for i in image_ids)
    if len(ids) < 2:
        raise ValueError(f"need at least 2 images to compose a chain, got {len(ids)}")

    pairs = list(zip(range(len(ids) - 1), ids[:-1], ids[1:]))

    # One independent stream per pair: same results whatever the scheduling.
    seeds = np.random.SeedSequence(config.seed).spawn(len(pairs))
    rngs = [np.random.default_rng(s) for s in seeds]

    logger.info("Estimating %d %s transforms...", len(pairs), config.model)

    if config.workers > 1 and len(pairs) > 1:
        with ThreadPoolExecutor(max_workers=config.workers) as pool:
            links = list(pool.map(
                lambda args: _estimate_link(graph, *args[0], config, args[1]),
                zip(pairs, rngs),
            ))
    else:
        links = [_estimate_link(graph, *pair, config, rng) for pair, rng in zip(pairs, rngs)]

    chain = TransformChain(image_ids=ids, links=tuple(links), model=config.model)
    if chain.gaps:
        logger.warning("%d of %d pairs have no transform", len(chain.gaps), len(chain))
    return chain


def _invert(T: Mat3x3) -> Mat3x3:
    try:
        return np.linalg.inv(ensure_valid_mat3x3(np.asarray(T, dtype=np.float64)))
    except np.linalg.LinAlgError as exc:
        raise DegenerateError(f"cannot invert transform: {exc}") from exc


def compose_cumulative(transforms: Sequence[Mat3x3]) -> list[Mat3x3]:
    """
    Fold pairwise transforms into cumulative ones: C[0] = I, C[i] = inv(T[i-1]) @ C[i-1].

    Returns len(transforms) + 1 matrices.
    """
    cumulative = [np.eye(3, dtype=np.float64)]
    for T in transforms:
        cumulative.append(_invert(T) @ cumulative[-1])
    return cumulative


def cumulative_transforms(
        chain: TransformChain,
        gap_policy: GapPolicy = "identity",
) -> list[Optional[Mat3x3]]:
    """
    Cumulative per-frame transforms for a chain that may contain gaps.

    One entry per image. An entry is None only with gap_policy="skip", for
    frames that can no longer be related to the first one.
    """
    if gap_policy not in GAP_POLICIES:
        raise ValueError(f"Unknown gap_policy {gap_policy!r}, expected one of {GAP_POLICIES}")

    cumulative: list[Optional[Mat3x3]] = [np.eye(3, dtype=np.float64)]
    for link in chain.links:
        prev = cumulative[-1]
        if prev is None:
            cumulative.append(None)
            continue

        if link.transform is not None:
            cumulative.append(_invert(link.transform) @ prev)
        elif gap_policy == "identity":
            cumulative.append(prev.copy())
        elif gap_policy == "raise":
            raise ChainGapError(link.index, link.image0, link.image1, link.reason or "unknown")
        else:
            cumulative.append(None)

    return cumulative
