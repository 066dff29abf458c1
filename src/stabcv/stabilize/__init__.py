from .warp import WarpParams, warp_frame, warp_frame_affine, warp_frame_perspective, draw_frame_bounds, is_affine
from .config import StabilizeConfig, GapPolicy, GAP_POLICIES
from .chain import (
    ChainGapError, ChainLink, TransformChain,
    compose_chain, compose_cumulative, cumulative_transforms,
)
from .stabilizer import SequenceStabilizer, stabilized_path
from .pipeline import StabilizePipeline, StabilizeReport, frame_image_ids


__all__ = [
    "WarpParams", "warp_frame", "warp_frame_affine", "warp_frame_perspective", "draw_frame_bounds", "is_affine",
    "StabilizeConfig", "GapPolicy", "GAP_POLICIES",
    "ChainGapError", "ChainLink", "TransformChain",
    "compose_chain", "compose_cumulative", "cumulative_transforms",
    "SequenceStabilizer", "stabilized_path",
    "StabilizePipeline", "StabilizeReport", "frame_image_ids",
]
