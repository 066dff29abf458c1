"""
Matching package: match graph + matches file I/O
"""
from .clean_points import clean_points
from .matches import MatchGraph, MatchFormatError, load_matches_txt, save_matches_txt

__all__ = [
    "clean_points",
    "MatchGraph", "MatchFormatError", "load_matches_txt", "save_matches_txt",
]
