"""
Name -> ModelFitter lookup for the four warp families.

Families can be given by name or by integer code
(0 euclidean, 1 similarity, 2 affine, 3 homography).
"""

from __future__ import annotations

from typing import Literal, Union

from .types import Mat3x3, ModelFitter
from .affine_fitter import AffineFitter
from .euclidean_fitter import EuclideanFitter, SimilarityFitter
from .homography_fitter import HomographyFitter

TransformModel = Literal["euclidean", "similarity", "affine", "homography"]

MODEL_NAMES: tuple[str, ...] = ("euclidean", "similarity", "affine", "homography")

_FITTERS = {
    "euclidean": EuclideanFitter,
    "similarity": SimilarityFitter,
    "affine": AffineFitter,
    "homography": HomographyFitter,
}


def normalize_model_name(model: Union[str, int]) -> TransformModel:
    """
    Accept a family name (any case) or its integer code and return the name.
    """
    if isinstance(model, int) or (isinstance(model, str) and model.strip().isdigit()):
        code = int(model)
        if not 0 <= code < len(MODEL_NAMES):
            raise ValueError(f"Unknown transformation code {code}, expected 0..{len(MODEL_NAMES) - 1}")
        return MODEL_NAMES[code]  # type: ignore[return-value]

    name = str(model).strip().lower()
    if name not in _FITTERS:
        raise ValueError(f"Unknown transformation {model!r}, expected one of {', '.join(MODEL_NAMES)}")
    return name  # type: ignore[return-value]


def make_fitter(model: Union[str, int]) -> ModelFitter[Mat3x3]:
    return _FITTERS[normalize_model_name(model)]()


def min_samples_for(model: Union[str, int]) -> int:
    return _FITTERS[normalize_model_name(model)].min_samples
