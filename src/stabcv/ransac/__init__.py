"""
RANSAC package

This module provides:
- Point conditioning for linear estimators
- Closed-form / linear estimators for euclidean, similarity, affine,
  homography (and the fundamental matrix)
- ModelFitter adapters and a name -> fitter lookup
- A reusable generic RANSAC implementation
"""

from .errors import (
    EstimationError, InsufficientDataError, DegenerateError, NoConsensusError,
)

from .types import (
    FloatArray, BoolArray, Points2D, PointsHomog, Mask2D, Mat3x3,
    ModelFitter, RansacResult, as_points, as_homogeneous, is_valid_mat3x3,
)

from .normalize import (
    mean_and_variance, preconditioner_from_points, isotropic_preconditioner_from_points,
    apply_transformation_to_points, unnormalize_transform,
)

from .affine import (
    fit_affine_minimal, fit_affine_least_squares, apply_T, residuals_L2,
)

from .euclidean import fit_euclidean, fit_similarity, euclidean_from_params

from .homography import fit_homography

from .fundamental import (
    fit_fundamental_linear, fit_fundamental_8point, epipolar_residuals, sampson_distance,
)

from .affine_fitter import AffineFitter

from .euclidean_fitter import EuclideanFitter, SimilarityFitter

from .homography_fitter import HomographyFitter, FundamentalFitter

from .models import TransformModel, MODEL_NAMES, make_fitter, min_samples_for, normalize_model_name

from .core import ransac, required_iterations

__all__ = [
    "EstimationError", "InsufficientDataError", "DegenerateError", "NoConsensusError",
    "FloatArray", "BoolArray", "Points2D", "PointsHomog", "Mask2D", "Mat3x3",
    "ModelFitter", "RansacResult", "as_points", "as_homogeneous", "is_valid_mat3x3",
    "mean_and_variance", "preconditioner_from_points", "isotropic_preconditioner_from_points",
    "apply_transformation_to_points", "unnormalize_transform",
    "fit_affine_minimal", "fit_affine_least_squares", "apply_T", "residuals_L2",
    "fit_euclidean", "fit_similarity", "euclidean_from_params",
    "fit_homography",
    "fit_fundamental_linear", "fit_fundamental_8point", "epipolar_residuals", "sampson_distance",
    "AffineFitter", "EuclideanFitter", "SimilarityFitter", "HomographyFitter", "FundamentalFitter",
    "TransformModel", "MODEL_NAMES", "make_fitter", "min_samples_for", "normalize_model_name",
    "ransac", "required_iterations",
]
