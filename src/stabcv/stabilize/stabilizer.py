"""
Sequence stabilizer for a fixed camera.

Every frame i is warped with its cumulative transform C[i] (frame i -> frame 0),
so tracked features stay at the position they have in the first image. The
exposed areas are filled according to WarpParams (black by default); nothing
is blended between frames.

Output naming:

    <out_folder>/<stem><suffix><ext>

with an empty out_folder keeping each image next to its input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

import cv2
import numpy as np

from ..ransac.types import Mat3x3
from .config import StabilizeConfig
from .warp import warp_frame, draw_frame_bounds

logger = logging.getLogger(__name__)


def stabilized_path(image_path: str | Path, out_folder: str | Path | None, suffix: str) -> Path:
    """
    'a/b/frame_001.png', 'out', '_stab'  ->  'out/frame_001_stab.png'
    """
    src = Path(image_path)
    folder = src.parent if out_folder in (None, "") else Path(out_folder)
    return folder / f"{src.stem}{suffix}{src.suffix}"


@dataclass
class SequenceStabilizer:
    """
    - stabilize_frame(frame, T) -> warped frame (same size, same dtype)
    - run(image_files, cumulative) -> written paths

    Frames that cannot be read, and frames without a cumulative transform
    (gap_policy="skip"), are skipped with a warning.
    """
    config: StabilizeConfig = field(default_factory=StabilizeConfig)
    bounds_color: tuple[int, int, int] = (255, 255, 255)

    def stabilize_frame(self, frame: np.ndarray, T: Mat3x3) -> np.ndarray:
        if self.config.draw_lines:
            frame = draw_frame_bounds(frame, color=self.bounds_color)
        return warp_frame(frame, T, params=self.config.warp_params)

    def run(
            self,
            image_files: Sequence[str | Path],
            cumulative: Sequence[Optional[Mat3x3]],
    ) -> list[Path]:
        if len(image_files) != len(cumulative):
            raise ValueError(
                f"got {len(image_files)} images but {len(cumulative)} cumulative transforms"
            )

        written: list[Path] = []
        for i, (image_file, T) in enumerate(zip(image_files, cumulative)):
            if T is None:
                logger.warning("frame %d (%s): no transform to the reference frame, skipped", i, image_file)
                continue

            frame = cv2.imread(str(image_file), cv2.IMREAD_UNCHANGED)
            if frame is None or frame.size == 0:
                logger.warning("frame %d (%s): could not be read, skipped", i, image_file)
                continue

            stable = self.stabilize_frame(frame, T)

            out_path = stabilized_path(image_file, self.config.out_folder, self.config.out_suffix)
            out_path.parent.mkdir(parents=True, exist_ok=True)
            if not cv2.imwrite(str(out_path), stable):
                logger.warning("frame %d: failed to write %s", i, out_path)
                continue

            logger.debug("frame %d -> %s", i, out_path)
            written.append(out_path)

        return written
