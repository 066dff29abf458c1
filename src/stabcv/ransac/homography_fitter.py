"""
Adapter classes for the projective models: homography and the fundamental matrix.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from .types import Points2D, Mat3x3, FloatArray, ModelFitter
from .affine import residuals_L2
from .homography import HOMOGRAPHY_MIN_SAMPLES, RANK_TOL, fit_homography
from .fundamental import FUNDAMENTAL_MIN_SAMPLES, fit_fundamental_8point, sampson_distance


@dataclass(frozen=True)
class HomographyFitter(ModelFitter[Mat3x3]):
    """
    General planar motion (8 dof), normalized DLT for both the sample and the refit.
    """
    min_samples: ClassVar[int] = HOMOGRAPHY_MIN_SAMPLES
    rank_tol: float = RANK_TOL

    def fit_minimal(self, pts0: Points2D, pts1: Points2D) -> Mat3x3:
        return fit_homography(pts0, pts1, rank_tol=self.rank_tol)

    def fit_least_squares(self, pts0: Points2D, pts1: Points2D) -> Mat3x3:
        return fit_homography(pts0, pts1, rank_tol=self.rank_tol)

    def residuals(self, model: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
        return residuals_L2(model, pts0, pts1)


@dataclass(frozen=True)
class FundamentalFitter(ModelFitter[Mat3x3]):
    """
    Epipolar geometry between two views. Residual is the Sampson distance,
    so the RANSAC threshold stays in pixels.

    Not a warp: the result is rank 2 and cannot be used for stabilization.
    """
    min_samples: ClassVar[int] = FUNDAMENTAL_MIN_SAMPLES

    def fit_minimal(self, pts0: Points2D, pts1: Points2D) -> Mat3x3:
        return fit_fundamental_8point(pts0, pts1)

    def fit_least_squares(self, pts0: Points2D, pts1: Points2D) -> Mat3x3:
        return fit_fundamental_8point(pts0, pts1)

    def residuals(self, model: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
        return sampson_distance(model, pts0, pts1)
