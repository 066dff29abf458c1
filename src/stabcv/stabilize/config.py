"""
Run configuration for chain composition + stabilization.

Everything the run needs is passed in explicitly through StabilizeConfig;
nothing is read from process-wide state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from ..ransac.models import TransformModel, normalize_model_name
from .warp import WarpParams

# How cumulative_transforms bridges a pair that produced no transform:
# - "identity": assume no motion across the gap
# - "raise": stop with ChainGapError
# - "skip": frames after the gap get no transform (not written)
GapPolicy = Literal["identity", "raise", "skip"]
GAP_POLICIES: tuple[str, ...] = ("identity", "raise", "skip")


@dataclass(frozen=True)
class StabilizeConfig:
    """
    Estimation:
    - model: "euclidean" | "similarity" | "affine" | "homography"
    - tau: inlier threshold in pixels (default: 1px)
    - outliers_prob: accepted probability that RANSAC never draws an
      all-inlier sample; sets the adaptive iteration count
    - max_iters: hard cap on RANSAC iterations per pair
    - seed: base seed, each pair gets its own spawned generator
    - workers: > 1 estimates the pairs in a thread pool

    Chain:
    - gap_policy: see GapPolicy

    Output:
    - out_folder: "" keeps each image in its own folder
    - out_suffix: inserted before the file extension
    - draw_lines: draw the frame border before warping
    - warp_params: OpenCV border / interpolation settings
    """
    model: TransformModel = "similarity"
    tau: float = 1.0
    outliers_prob: float = 1e-2
    max_iters: int = 4096
    seed: int = 0
    workers: int = 1

    gap_policy: GapPolicy = "identity"

    out_folder: str = "./"
    out_suffix: str = "_stab"
    draw_lines: bool = False
    warp_params: WarpParams = field(default_factory=WarpParams)

    def __post_init__(self) -> None:
        object.__setattr__(self, "model", normalize_model_name(self.model))
        if self.tau <= 0.0:
            raise ValueError(f"tau must be > 0, got {self.tau}")
        if not 0.0 < self.outliers_prob < 1.0:
            raise ValueError(f"outliers_prob must be in (0, 1), got {self.outliers_prob}")
        if self.max_iters < 1:
            raise ValueError(f"max_iters must be >= 1, got {self.max_iters}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.gap_policy not in GAP_POLICIES:
            raise ValueError(f"Unknown gap_policy {self.gap_policy!r}, expected one of {GAP_POLICIES}")
