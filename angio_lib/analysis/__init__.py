"""Analysis functions for reconstructed bifurcations."""

from .foreshortening import foreshortening_report, compare_views, score_map

__all__ = [
    "foreshortening_report",
    "compare_views",
    "score_map",
]
