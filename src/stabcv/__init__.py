"""
stabcv: robust planar transform estimation (euclidean, similarity, affine,
homography) from noisy 2D correspondences, and fixed-camera sequence
stabilization built on top of it.
"""

from .ransac import (
    EstimationError, InsufficientDataError, DegenerateError, NoConsensusError,
    RansacResult, ransac, make_fitter,
)
from .matching import MatchGraph, load_matches_txt
from .stabilize import (
    StabilizeConfig, StabilizePipeline, compose_chain, cumulative_transforms,
)

__version__ = "0.1.0"

__all__ = [
    "EstimationError", "InsufficientDataError", "DegenerateError", "NoConsensusError",
    "RansacResult", "ransac", "make_fitter",
    "MatchGraph", "load_matches_txt",
    "StabilizeConfig", "StabilizePipeline", "compose_chain", "cumulative_transforms",
]
