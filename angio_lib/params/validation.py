"""Parameter validation with bounds checking.

This module validates AnalysisParams so that out-of-range settings are
reported before a run instead of producing silently poor recommendations.

Units: image distances are pixels, angles are degrees.
"""

import logging
from typing import List, Tuple

from ..ops.optimizer import REFINEMENT_METHODS
from .presets import AnalysisParams

logger = logging.getLogger(__name__)


PARAM_BOUNDS = {
    "perspective.threshold": (0.0, 1e9, "response"),
    "perspective.window": (1, 15, "px"),
    "perspective.k": (0.01, 0.25, "ratio"),
    "perspective.max_corners": (4, 100, "count"),
    "tracking.step_size": (0.1, 10.0, "px"),
    "tracking.search_radius": (1, 25, "px"),
    "tracking.blend_factor": (0.0, 1.0, "ratio"),
    "tracking.edge_margin": (0, 20, "px"),
    "tracking.smoothing_window": (1, 15, "points"),
    "tracking.segment_cap": (1.0, 1000.0, "px"),
    "bifurcation.segment_length": (2.0, 200.0, "px"),
    "bifurcation.segment_step": (0.5, 50.0, "px"),
    "optimizer.grid_step": (1.0, 5.0, "degrees"),
    "optimizer.main_weight": (1.2, 1.5, "weight"),
    "optimizer.branch_weight": (0.1, 10.0, "weight"),
    "optimizer.refine_step": (0.1, 10.0, "degrees"),
    "optimizer.min_step": (0.01, 1.0, "degrees"),
    "optimizer.gradient_step": (0.01, 1.0, "degrees"),
    "optimizer.learning_rate": (0.1, 200.0, "degrees"),
    "optimizer.max_iterations": (1, 1000, "iterations"),
    "optimizer.tolerance": (0.0, 0.1, "score"),
    "optimizer.workers": (1, 64, "threads"),
}


def validate_params(params: AnalysisParams) -> Tuple[bool, List[str]]:
    """
    Validate AnalysisParams against bounds.

    Parameters
    ----------
    params : AnalysisParams
        Parameters to validate

    Returns
    -------
    is_valid : bool
        True if all parameters are valid
    warnings : list of str
        List of validation warnings/errors
    """
    warnings = []

    for path, (min_val, max_val, unit) in PARAM_BOUNDS.items():
        section, name = path.split(".")
        value = getattr(getattr(params, section), name, None)

        if value is None:
            continue

        if value < min_val:
            warnings.append(f"{path} = {value} {unit} is below minimum {min_val} {unit}")
        elif value > max_val:
            warnings.append(f"{path} = {value} {unit} exceeds maximum {max_val} {unit}")

    optimizer = params.optimizer
    if optimizer.refinement not in REFINEMENT_METHODS:
        warnings.append(
            f"optimizer.refinement = {optimizer.refinement!r} is not one of {', '.join(REFINEMENT_METHODS)}"
        )

    if optimizer.min_step > optimizer.refine_step:
        warnings.append(
            f"optimizer.min_step ({optimizer.min_step}) is larger than refine_step "
            f"({optimizer.refine_step}), hill climbing will not move"
        )

    if params.perspective.interpolation_order not in (0, 1):
        warnings.append(
            f"perspective.interpolation_order = {params.perspective.interpolation_order} "
            "must be 0 (nearest) or 1 (bilinear)"
        )

    if params.tracking.smoothing_window % 2 == 0:
        warnings.append(
            f"tracking.smoothing_window ({params.tracking.smoothing_window}) should be odd "
            "for a symmetric moving average"
        )

    if params.tracking.step_size > params.tracking.search_radius:
        warnings.append(
            f"tracking.step_size ({params.tracking.step_size}px) is larger than search_radius "
            f"({params.tracking.search_radius}px), the tracker may skip off the vessel"
        )

    if params.bifurcation.segment_step > params.bifurcation.segment_length:
        warnings.append(
            f"bifurcation.segment_step ({params.bifurcation.segment_step}px) exceeds segment_length "
            f"({params.bifurcation.segment_length}px), adjusted segments will be a single point"
        )

    is_valid = len(warnings) == 0
    return is_valid, warnings


def validate_and_warn(params: AnalysisParams) -> AnalysisParams:
    """
    Validate parameters and log warnings.

    Parameters
    ----------
    params : AnalysisParams
        Parameters to validate

    Returns
    -------
    params : AnalysisParams
        Same parameters (for chaining)
    """
    is_valid, warnings = validate_params(params)

    if not is_valid:
        logger.warning("Parameter validation warnings (%d):", len(warnings))
        for warning in warnings:
            logger.warning("  - %s", warning)

    return params
