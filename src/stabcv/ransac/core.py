"""
Generic RANSAC loop (model-agnostic).

RANSAC overview:
- Randomly sample a *minimal* subset of correspondences
- Fit a candidate model from that subset
- Score all correspondences by computing residual errors
- Mark inliers where error <= tau
- Keep the model with the most inliers (ties: lower inlier RMS)
- Adaptively shrink the number of iterations from the current inlier ratio
- Refit using all inliers (least squares) to get the final model

Uses the ModelFitter Protocol from types.py, so one loop serves every model
family (euclidean, similarity, affine, homography, fundamental).
"""
from __future__ import annotations

import logging
import math
from typing import Optional, TypeVar

import numpy as np

from .errors import DegenerateError, InsufficientDataError, NoConsensusError
from .types import Points2D, Mask2D, ModelFitter, RansacResult, check_correspondences, rms

logger = logging.getLogger(__name__)

M = TypeVar("M")

# Upper bound returned when no all-inlier sample is possible at all.
_UNBOUNDED_ITERS = 10**9


def required_iterations(
        *,
        failure_prob: float,
        inlier_ratio: float,
        sample_size: int,
) -> int:
    """
    Number of RANSAC iterations so that the probability of never having drawn
    an all-inlier minimal sample drops below failure_prob.

    inlier ratio w = (# inliers) / N, minimal sample s:
    - P(sample all inliers) = w^s
    - P(k samples, none all-inlier) = (1 - w^s)^k <= eta
    - k >= log(eta) / log(1 - w^s)

    Edge cases:
     - w == 0  -> impossible, return "infinite-ish" (capped by the caller)
     - w == 1  -> 1 iteration is enough
    """
    eta = float(np.clip(failure_prob, 1e-12, 1.0 - 1e-12))
    w = float(np.clip(inlier_ratio, 0.0, 1.0))
    s = int(sample_size)

    if s <= 0:
        raise ValueError("sample_size must be >= 1")

    if w >= 1.0:
        return 1
    if w <= 0.0:
        return _UNBOUNDED_ITERS

    w_to_s = w ** s
    # If w^s is extremely tiny, log(1 - w^s) is ~0
    w_to_s = float(np.clip(w_to_s, 1e-12, 1.0 - 1e-12))

    k = math.ceil(math.log(eta) / math.log(1.0 - w_to_s))
    return int(min(max(1, k), _UNBOUNDED_ITERS))


def ransac(
        model_fitter: ModelFitter[M],
        pts0: Points2D,
        pts1: Points2D,
        *,
        tau: float = 1.0,
        outliers_prob: float = 1e-2,
        max_iters: int = 4096,
        seed: int = 0,
        rng: Optional[np.random.Generator] = None,
) -> RansacResult[M]:
    """
    Run RANSAC to fit a model between pts0 -> pts1.

    Inputs:
    - model_fitter: provides min_samples, fit_minimal, fit_least_squares, residuals
    - pts0, pts1: (N,2) corresponding points (same N)
    - tau: inlier threshold in pixels (residual <= tau)
    - outliers_prob: accepted probability of never drawing an all-inlier
      sample; drives the adaptive iteration count
    - max_iters: hard cap on iterations
    - seed / rng: sampling source. An explicit Generator wins over seed.

    Returns RansacResult with the polished model and the best inlier mask.

    Raises:
    - InsufficientDataError if N < min_samples
    - NoConsensusError if no candidate reaches min(min_samples + 1, N) inliers
    """
    if tau <= 0.0:
        raise ValueError(f"tau must be > 0, got {tau}")
    if not 0.0 < outliers_prob < 1.0:
        raise ValueError(f"outliers_prob must be in (0, 1), got {outliers_prob}")
    if max_iters < 1:
        raise ValueError(f"max_iters must be >= 1, got {max_iters}")

    min_samples = int(model_fitter.min_samples)
    pts0, pts1 = check_correspondences(pts0, pts1, min_samples)
    n = pts0.shape[0]

    # A candidate must be supported by at least one point beyond its own sample,
    # unless the sample is the whole set.
    min_inliers = min(min_samples + 1, n)

    if rng is None:
        rng = np.random.default_rng(seed)

    best_model: Optional[M] = None
    best_inliers: Optional[Mask2D] = None
    best_num_inliers = -1
    best_rms = float("inf")
    num_degenerate = 0

    target_iters = max_iters
    iters_run = 0

    # ---------- Main RANSAC Loop ----------
    while iters_run < target_iters:
        iters_run += 1

        # Unique indices, no replacement
        sample_idx = rng.choice(n, size=min_samples, replace=False)

        try:
            model = model_fitter.fit_minimal(pts0[sample_idx], pts1[sample_idx])
        except DegenerateError:
            num_degenerate += 1
            continue

        err = model_fitter.residuals(model, pts0, pts1)
        inliers: Mask2D = err <= tau

        num_inliers = int(np.count_nonzero(inliers))
        if num_inliers < min_inliers:
            continue

        cand_rms = rms(err[inliers])

        is_better = (num_inliers > best_num_inliers) or (
                num_inliers == best_num_inliers and cand_rms < best_rms
        )
        if not is_better:
            continue

        best_model = model
        best_inliers = inliers
        best_num_inliers = num_inliers
        best_rms = cand_rms

        w = best_num_inliers / float(n)
        iter_needed = required_iterations(
            failure_prob=outliers_prob,
            inlier_ratio=w,
            sample_size=min_samples,
        )
        target_iters = min(max_iters, max(iter_needed, iters_run))
        logger.debug(
            "better model: inliers=%d/%d, w=%.3f, target_iters=%d",
            best_num_inliers, n, w, target_iters,
        )

    if best_model is None or best_inliers is None:
        logger.debug("no consensus after %d iterations (%d degenerate samples)", iters_run, num_degenerate)
        raise NoConsensusError(iters_run, min_inliers)

    # ---------- Polish ----------
    final_model = best_model
    try:
        final_model = model_fitter.fit_least_squares(pts0[best_inliers], pts1[best_inliers])
    except (DegenerateError, InsufficientDataError) as exc:
        logger.debug("inlier refit failed (%s), keeping minimal-sample model", exc)

    final_err = model_fitter.residuals(final_model, pts0, pts1)

    return RansacResult(
        model=final_model,
        inliers=best_inliers,
        num_inliers=best_num_inliers,
        rms_error=rms(final_err[best_inliers]),
        iterations=iters_run,
        threshold=float(tau),
    )
