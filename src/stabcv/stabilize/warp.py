"""
Provide a clean wrapper for warping frames using OpenCV.

The estimation code represents motion as 3x3 homogeneous matrices (Mat3x3),
consistent across the euclidean, similarity, affine and homography models.

OpenCV has two different warping APIs:
1) cv2.warpAffine:
    - expects a 2x3 matrix (affine transform)
    - used for rotation / scale / shear / translation (no projective part)
2) cv2.warpPerspective:
    - expects a 3x3 matrix (homography)
    - used for projective transforms

warp_frame picks one from the matrix's last row.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np
import cv2

from ..ransac.types import Mat3x3

# Tolerance for "last row is [0, 0, 1]".
_AFFINE_ATOL = 1e-12


# ---------- Warp parameters ----------
@dataclass(frozen=True)
class WarpParams:
    """
    These settings control how OpenCV fills pixels that get "exposed"
    when the frame is moved back onto the reference frame.

    Parameters:
    - border_mode:
      OpenCV border mode constant.
        - cv2.BORDER_CONSTANT: fill with a constant color (border_value)
        - cv2.BORDER_REFLECT: mirror reflect at edge
        - cv2.BORDER_REPLICATE: repeat edge pixels

    - border_value:
      Used only when border_mode == cv2.BORDER_CONSTANT.
      For BGR frames, this should be a 3-tuple like (0,0,0).

    - interpolation:
      Controls resampling when warping.
      - cv2.INTER_LINEAR: good default for video.
      - cv2.INTER_NEAREST: faster but blocky.
      - cv2.INTER_CUBIC: smoother but slower.
    """
    border_mode: int = cv2.BORDER_CONSTANT
    border_value: Tuple[int, int, int] = (0, 0, 0)
    interpolation: int = cv2.INTER_LINEAR


def is_affine(T: Mat3x3) -> bool:
    return bool(np.allclose(T[2], (0.0, 0.0, 1.0), rtol=0.0, atol=_AFFINE_ATOL))


# ---------- Affine warp helper ----------
def warp_frame_affine(
        frame: np.ndarray,
        T: Mat3x3,
        *,
        params: WarpParams = WarpParams(),
) -> np.ndarray:
    """
    Move a frame with an affine-family transform (bottom row [0, 0, 1]).

    Destination pixel p takes the value of the source at inv(T) p, so passing
    a cumulative transform C[i] lays frame i over frame 0. Size, channels and
    dtype are kept.
    """
    if frame is None or frame.size == 0:
        return frame

    if T.shape != (3, 3):
        raise ValueError(f"warp_frame_affine expected T shape (3,3), got {T.shape}")

    # dsize is (width, height)
    H, W = frame.shape[:2]

    A = T[:2, :].astype(np.float64, copy=False)

    return cv2.warpAffine(
        frame,
        A,
        (W, H),
        flags=params.interpolation,
        borderMode=params.border_mode,
        borderValue=params.border_value,
    )


# ---------- Perspective warp helper ----------
def warp_frame_perspective(
    frame: np.ndarray,
    H_3x3: Mat3x3,
    *,
    params: WarpParams = WarpParams(),
) -> np.ndarray:
    """
    Same as warp_frame_affine for a transform with a projective bottom row.
    """
    if frame is None or frame.size == 0:
        return frame
    if H_3x3.shape != (3, 3):
        raise ValueError(f"warp_frame_perspective expected (3,3), got {H_3x3.shape}")

    Ht, Wt = frame.shape[:2]

    return cv2.warpPerspective(
        frame,
        H_3x3.astype(np.float64, copy=False),
        (Wt, Ht),
        flags=params.interpolation,
        borderMode=params.border_mode,
        borderValue=params.border_value,
    )


def warp_frame(frame: np.ndarray, T: Mat3x3, *, params: WarpParams = WarpParams()) -> np.ndarray:
    if is_affine(T):
        return warp_frame_affine(frame, T, params=params)
    return warp_frame_perspective(frame, T, params=params)


def draw_frame_bounds(
        frame: np.ndarray,
        color: Tuple[int, int, int] = (255, 255, 255),
        thickness: int = 1,
) -> np.ndarray:
    """
    Draw the image border (all four edges) on a copy of the frame, so the
    frame outline is visible after warping.
    """
    out = frame.copy()
    h, w = out.shape[:2]
    cv2.rectangle(out, (0, 0), (w - 1, h - 1), color, thickness)
    return out
