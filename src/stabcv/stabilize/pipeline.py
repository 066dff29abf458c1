"""
End-to-end stabilization of an image sequence from a matches file.

    (1) sort image files (lexicographic order = frame order)
    (2) load the matches file into a MatchGraph
    (3) compose the transform chain over the image ids (RANSAC per pair)
    (4) fold into cumulative transforms (gap policy from the config)
    (5) warp + write every frame

Image id k in the matches file refers to the k-th image after sorting. A
file numbered differently (e.g. from 1) is accepted when it has one id per
image; see frame_image_ids.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from ..matching.matches import MatchGraph, load_matches_txt
from ..ransac.types import Mat3x3
from .chain import TransformChain, compose_chain, cumulative_transforms
from .config import StabilizeConfig
from .stabilizer import SequenceStabilizer

logger = logging.getLogger(__name__)


def frame_image_ids(graph: MatchGraph, num_files: int) -> list[int]:
    """
    Image id of each sorted file.

    Ids 0..n-1 address the files directly (missing ids become gaps). Any other
    numbering is accepted when the graph holds exactly one id per file, the
    k-th smallest id going to the k-th file.
    """
    ids = graph.images
    if all(0 <= i < num_files for i in ids):
        return list(range(num_files))

    if len(ids) == num_files:
        logger.info("Image ids %d..%d mapped onto the %d sorted files", ids[0], ids[-1], num_files)
        return ids

    raise ValueError(
        f"matches use {len(ids)} image ids ({ids[0]}..{ids[-1]}) that cannot be "
        f"matched to {num_files} image files"
    )


@dataclass(frozen=True)
class StabilizeReport:
    image_files: tuple[Path, ...]
    chain: TransformChain
    cumulative: tuple[Optional[Mat3x3], ...]
    written: tuple[Path, ...]

    @property
    def num_gaps(self) -> int:
        return len(self.chain.gaps)

    def summary(self) -> str:
        return (
            f"{len(self.image_files)} images, {len(self.chain)} pairs "
            f"({self.num_gaps} without transform), {len(self.written)} frames written"
        )


@dataclass
class StabilizePipeline:
    config: StabilizeConfig = field(default_factory=StabilizeConfig)

    def run_graph(self, image_files: Sequence[str | Path], graph: MatchGraph) -> StabilizeReport:
        files = tuple(sorted((Path(f) for f in image_files), key=str))
        if len(files) < 2:
            raise ValueError(f"need at least 2 images, got {len(files)}")

        chain = compose_chain(graph, frame_image_ids(graph, len(files)), self.config)
        cumulative = cumulative_transforms(chain, self.config.gap_policy)

        logger.info("Stabilizing %d images...", len(files))
        written = SequenceStabilizer(self.config).run(files, cumulative)

        return StabilizeReport(
            image_files=files,
            chain=chain,
            cumulative=tuple(cumulative),
            written=tuple(written),
        )

    def run(self, image_files: Sequence[str | Path], matches_path: str | Path) -> StabilizeReport:
        if len(image_files) < 2:
            raise ValueError(f"need at least 2 images, got {len(image_files)}")
        logger.info("Loading matches file %s...", matches_path)
        graph = load_matches_txt(matches_path)
        return self.run_graph(image_files, graph)
