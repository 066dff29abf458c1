"""
Failure taxonomy for transform estimation.

Every estimator in this package either returns a usable 3x3 matrix or raises
one of these. Callers that work pair-by-pair (the chain composer) catch
EstimationError and record a gap; nothing below that level swallows them.

- InsufficientDataError: fewer correspondences than the model's minimal sample
- DegenerateError: rank-deficient system, zero-scale conditioning,
  singular / non-finite result, or a LinAlgError from numpy
- NoConsensusError: RANSAC never found a candidate with enough inlier support
"""

from __future__ import annotations


class EstimationError(Exception):
    """Base class for per-pair estimation failures."""


class InsufficientDataError(EstimationError):
    def __init__(self, needed: int, got: int, what: str = "correspondences") -> None:
        self.needed = int(needed)
        self.got = int(got)
        super().__init__(f"need at least {self.needed} {what}, got {self.got}")


class DegenerateError(EstimationError):
    pass


class NoConsensusError(EstimationError):
    def __init__(self, iterations: int, min_inliers: int) -> None:
        self.iterations = int(iterations)
        self.min_inliers = int(min_inliers)
        super().__init__(
            f"no candidate reached {self.min_inliers} inliers in {self.iterations} iterations"
        )
