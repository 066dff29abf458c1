"""
Command-line interface: stabilize an image sequence from a matches file.

Usage:
    stabcv-stabilize frames/*.png -m matches.txt
    stabcv-stabilize frames/*.png -m matches.txt --transformation homography --of out/ --draw-lines -v
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .ransac.errors import EstimationError
from .ransac.models import MODEL_NAMES
from .stabilize import StabilizeConfig, StabilizePipeline, GAP_POLICIES

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stabcv-stabilize",
        description="Stabilize a fixed-camera image sequence from 2D feature matches.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Images are sorted by file name; image id k in the matches file is the k-th
sorted image. Matches file lines: <image_id> <track_id> <x> <y>

Transformations (name or code):
  0 euclidean    rotation + translation (3 dof)
  1 similarity   euclidean + scale (4 dof)
  2 affine       6 dof
  3 homography   general planar case (8 dof)
        """,
    )

    parser.add_argument("images", nargs="+", help="Input images {PNG, PNM, JPEG, ...}")
    parser.add_argument("-m", "--matches", default="matches.txt", help="Matches input file (default: matches.txt)")
    parser.add_argument(
        "-t",
        "--transformation",
        default="similarity",
        choices=list(MODEL_NAMES) + [str(i) for i in range(len(MODEL_NAMES))],
        help="Transformation type (default: similarity)",
    )
    parser.add_argument("--of", "--out-folder", dest="out_folder", default="./", help="Output folder (default: ./)")
    parser.add_argument("--os", "--out-suffix", dest="out_suffix", default="_stab", help="Output file suffix (default: _stab)")
    parser.add_argument("--draw-lines", action="store_true", help="Draw image bounds")

    parser.add_argument("--tau", type=float, default=1.0, help="Inlier threshold in pixels (default: 1.0)")
    parser.add_argument("--outliers-prob", type=float, default=1e-2, help="Outliers probability in ]0, 1[ (default: 0.01)")
    parser.add_argument("--max-iters", type=int, default=4096, help="RANSAC iteration cap per pair (default: 4096)")
    parser.add_argument("--seed", type=int, default=0, help="RANSAC seed (default: 0)")
    parser.add_argument("--workers", type=int, default=1, help="Pairs estimated in parallel (default: 1)")
    parser.add_argument(
        "--gap-policy",
        default="identity",
        choices=list(GAP_POLICIES),
        help="What to do with a pair that has no transform (default: identity)",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    if args.quiet:
        log_level = logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    matches_path = Path(args.matches)
    if not matches_path.exists():
        print(f"Error: matches file not found: {matches_path}", file=sys.stderr)
        return 1

    try:
        config = StabilizeConfig(
            model=args.transformation,
            tau=args.tau,
            outliers_prob=args.outliers_prob,
            max_iters=args.max_iters,
            seed=args.seed,
            workers=args.workers,
            gap_policy=args.gap_policy,
            out_folder=args.out_folder,
            out_suffix=args.out_suffix,
            draw_lines=args.draw_lines,
        )
        report = StabilizePipeline(config).run(args.images, matches_path)
    except (ValueError, OSError, EstimationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logger.info(report.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
