"""
Match graph: which 2D feature (track) was seen where, in which image.

    image id -> { track id -> (x, y) }

A track seen in two images is a correspondence between them. The estimation
code only ever asks for one thing: the aligned point arrays of an ordered
image pair (pairwise_correspondences).

Matches text format, one observation per line:

    <image_id> <track_id> <x> <y>

Blank lines and lines starting with '#' are ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Tuple

import numpy as np

from ..ransac.types import Points2D
from .clean_points import clean_points

logger = logging.getLogger(__name__)


class MatchFormatError(ValueError):
    def __init__(self, path: str | Path, line_no: int, line: str, reason: str) -> None:
        self.path = str(path)
        self.line_no = int(line_no)
        super().__init__(f"{self.path}:{self.line_no}: {reason}: {line.strip()!r}")


@dataclass
class MatchGraph:
    """
    In-memory feature graph.

    - add(image, track, x, y)
    - pairwise_correspondences(image_a, image_b) -> (pts_a, pts_b)
    """
    _tracks: Dict[int, Dict[int, Tuple[float, float]]] = field(default_factory=dict)

    def add(self, image: int, track: int, x: float, y: float) -> None:
        per_image = self._tracks.setdefault(int(image), {})
        if int(track) in per_image:
            logger.debug("track %d seen twice in image %d, keeping the last position", track, image)
        per_image[int(track)] = (float(x), float(y))

    @property
    def images(self) -> list[int]:
        return sorted(self._tracks)

    @property
    def num_images(self) -> int:
        return len(self._tracks)

    @property
    def num_observations(self) -> int:
        return sum(len(t) for t in self._tracks.values())

    def tracks_in(self, image: int) -> list[int]:
        return sorted(self._tracks.get(int(image), {}))

    def pairwise_correspondences(self, image_a: int, image_b: int) -> tuple[Points2D, Points2D]:
        """
        Points of every track seen in both images, ordered by track id.

        Returns two aligned (N,2) float64 arrays; N may be 0. Observations with
        non-finite coordinates are dropped.
        """
        obs_a = self._tracks.get(int(image_a), {})
        obs_b = self._tracks.get(int(image_b), {})
        common = sorted(set(obs_a) & set(obs_b))

        pts_a = np.array([obs_a[t] for t in common], dtype=np.float64).reshape(-1, 2)
        pts_b = np.array([obs_b[t] for t in common], dtype=np.float64).reshape(-1, 2)

        pts_a, pts_b, mask = clean_points(pts_a, pts_b)
        dropped = int(mask.shape[0] - np.count_nonzero(mask))
        if dropped:
            logger.debug("pair (%d, %d): dropped %d non-finite correspondences", image_a, image_b, dropped)
        return pts_a, pts_b

    @classmethod
    def from_observations(cls, observations: Iterable[tuple[int, int, float, float]]) -> "MatchGraph":
        graph = cls()
        for image, track, x, y in observations:
            graph.add(image, track, x, y)
        return graph


def _parse_line(path: str | Path, line_no: int, line: str) -> tuple[int, int, float, float] | None:
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None

    parts = stripped.split()
    if len(parts) != 4:
        raise MatchFormatError(path, line_no, line, f"expected 4 fields, got {len(parts)}")

    try:
        image, track = int(parts[0]), int(parts[1])
        x, y = float(parts[2]), float(parts[3])
    except ValueError as exc:
        raise MatchFormatError(path, line_no, line, "bad number") from exc

    return image, track, x, y


def load_matches_txt(path: str | Path) -> MatchGraph:
    """
    Load a matches text file into a MatchGraph.
    """
    path = Path(path)
    graph = MatchGraph()
    with path.open("r", encoding="utf-8") as fh:
        for line_no, line in enumerate(fh, start=1):
            obs = _parse_line(path, line_no, line)
            if obs is not None:
                graph.add(*obs)

    logger.info(
        "Loaded %d observations over %d images from %s",
        graph.num_observations, graph.num_images, path,
    )
    return graph


def save_matches_txt(graph: MatchGraph, path: str | Path) -> None:
    """
    Write a MatchGraph in the format load_matches_txt reads.
    """
    path = Path(path)
    with path.open("w", encoding="utf-8") as fh:
        for image in graph.images:
            for track in graph.tracks_in(image):
                x, y = graph._tracks[image][track]
                fh.write(f"{image} {track} {x!r} {y!r}\n")
