"""Optional matplotlib debug plots."""

from .plots import HAS_MATPLOTLIB, plot_centerlines, plot_score_map, plot_directions_3d

__all__ = [
    "HAS_MATPLOTLIB",
    "plot_centerlines",
    "plot_score_map",
    "plot_directions_3d",
]
