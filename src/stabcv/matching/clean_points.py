"""
Utilities for cleaning correspondence sets before robust estimation.

Remove:
- NaNs/Infs
"""

from __future__ import annotations

import numpy as np

from ..ransac.types import Points2D, BoolArray


def clean_points(pts0: Points2D, pts1: Points2D) -> tuple[Points2D, Points2D, BoolArray]:
    pts0 = np.asarray(pts0, dtype=np.float64)
    pts1 = np.asarray(pts1, dtype=np.float64)

    if pts0.ndim != 2 or pts1.ndim != 2 or pts0.shape != pts1.shape or pts0.shape[1] != 2:
        raise ValueError(f"Expected pts0/pts1 shape (N,2) matching; got {pts0.shape} vs {pts1.shape}")

    mask = np.isfinite(pts0).all(axis=1) & np.isfinite(pts1).all(axis=1)
    return pts0[mask], pts1[mask], mask
