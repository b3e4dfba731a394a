"""Parameter presets for the two-view bifurcation analysis.

This module groups the per-stage parameter objects into ``AnalysisParams``
and provides named presets for common use cases.

Units: image distances are pixels, angles are degrees.
"""

from dataclasses import dataclass, field

from ..imaging.perspective import PerspectiveParams
from ..ops.tracking import TrackingParams
from ..ops.bifurcation import BifurcationParams
from ..ops.optimizer import OptimizerParams


@dataclass
class AnalysisParams:
    """All parameters of a two-view analysis."""

    perspective: PerspectiveParams = field(default_factory=PerspectiveParams)
    tracking: TrackingParams = field(default_factory=TrackingParams)
    bifurcation: BifurcationParams = field(default_factory=BifurcationParams)
    optimizer: OptimizerParams = field(default_factory=OptimizerParams)
    correct_perspective: bool = True  # False skips frame detection entirely

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "perspective": self.perspective.to_dict(),
            "tracking": self.tracking.to_dict(),
            "bifurcation": self.bifurcation.to_dict(),
            "optimizer": self.optimizer.to_dict(),
            "correct_perspective": self.correct_perspective,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "AnalysisParams":
        """Create from dictionary."""
        return cls(
            perspective=PerspectiveParams.from_dict(d.get("perspective", {})),
            tracking=TrackingParams.from_dict(d.get("tracking", {})),
            bifurcation=BifurcationParams.from_dict(d.get("bifurcation", {})),
            optimizer=OptimizerParams.from_dict(d.get("optimizer", {})),
            correct_perspective=d.get("correct_perspective", True),
        )


def reference() -> AnalysisParams:
    """
    Default analysis.

    Characteristics:
    - 1 degree grid with hill-climb refinement
    - Main vessel weighted 1.5
    - Nearest-neighbour perspective resampling
    """
    return AnalysisParams()


def fast_preview() -> AnalysisParams:
    """
    Quick look while seeds are still being placed.

    Characteristics:
    - Coarse 5 degree grid
    - Shorter traced segments
    - Perspective correction skipped
    """
    return AnalysisParams(
        tracking=TrackingParams(segment_cap=30.0),
        optimizer=OptimizerParams(
            grid_step=5.0,  # 37 x 19 cells
            refine_step=2.0,
            min_step=0.5,
        ),
        correct_perspective=False,
    )


def fine_search() -> AnalysisParams:
    """
    Thorough search for the final recommendation.

    Characteristics:
    - 1 degree grid scored on a thread pool
    - Gradient refinement with a tight tolerance
    - Bilinear perspective resampling
    """
    return AnalysisParams(
        perspective=PerspectiveParams(interpolation_order=1),
        optimizer=OptimizerParams(
            grid_step=1.0,
            refinement="gradient",
            gradient_step=0.1,
            learning_rate=20.0,
            max_iterations=50,
            tolerance=1e-4,
            workers=4,
        ),
    )


def validation_suite() -> AnalysisParams:
    """
    Settings used for checks against known geometry.

    Characteristics:
    - Main vessel weighted 1.2
    - Gradient refinement, at most 50 iterations
    """
    return AnalysisParams(
        optimizer=OptimizerParams(
            grid_step=1.0,
            main_weight=1.2,
            refinement="gradient",
            max_iterations=50,
            tolerance=1e-3,
        ),
    )


PRESETS = {
    "reference": reference,
    "fast_preview": fast_preview,
    "fine_search": fine_search,
    "validation_suite": validation_suite,
}


def get_preset(name: str) -> AnalysisParams:
    """
    Get a parameter preset by name.

    Parameters
    ----------
    name : str
        Preset name (e.g., "reference", "fast_preview")

    Returns
    -------
    AnalysisParams
        Parameter configuration

    Raises
    ------
    ValueError
        If preset name is not recognized
    """
    if name not in PRESETS:
        available = ", ".join(PRESETS.keys())
        raise ValueError(f"Unknown preset '{name}'. Available: {available}")

    return PRESETS[name]()


def list_presets() -> list:
    """List all available preset names."""
    return list(PRESETS.keys())
