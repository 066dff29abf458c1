"""
Adapter classes for the Euclidean and similarity models (ModelFitter protocol).

Both families use the same closed form for the minimal sample (2 points) and
for the inlier refit, so fit_minimal and fit_least_squares share one solver.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from .types import Points2D, Mat3x3, FloatArray, ModelFitter
from .affine import residuals_L2
from .euclidean import (
    EUCLIDEAN_MIN_SAMPLES, SIMILARITY_MIN_SAMPLES,
    fit_euclidean, fit_similarity,
)


@dataclass(frozen=True)
class EuclideanFitter(ModelFitter[Mat3x3]):
    """
    Rigid motion: rotation + translation (3 dof).
    """
    min_samples: ClassVar[int] = EUCLIDEAN_MIN_SAMPLES

    def fit_minimal(self, pts0: Points2D, pts1: Points2D) -> Mat3x3:
        return fit_euclidean(pts0, pts1)

    def fit_least_squares(self, pts0: Points2D, pts1: Points2D) -> Mat3x3:
        return fit_euclidean(pts0, pts1)

    def residuals(self, model: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
        return residuals_L2(model, pts0, pts1)


@dataclass(frozen=True)
class SimilarityFitter(ModelFitter[Mat3x3]):
    """
    Rotation + isotropic scale + translation (4 dof).
    """
    min_samples: ClassVar[int] = SIMILARITY_MIN_SAMPLES

    def fit_minimal(self, pts0: Points2D, pts1: Points2D) -> Mat3x3:
        return fit_similarity(pts0, pts1)

    def fit_least_squares(self, pts0: Points2D, pts1: Points2D) -> Mat3x3:
        return fit_similarity(pts0, pts1)

    def residuals(self, model: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
        return residuals_L2(model, pts0, pts1)
