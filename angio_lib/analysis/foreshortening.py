"""Foreshortening analysis for a reconstructed bifurcation."""

from typing import Dict, Optional, Sequence
import numpy as np

from ..core.types import ProjectionAngles, VESSEL_NAMES
from ..geometry.projection import viewing_direction
from ..ops.optimizer import (
    OptimizerParams,
    validate_vessel_directions,
    single_vessel_score,
    grid_axes,
    score_grid,
)


def foreshortening_report(
    directions: Sequence,
    angles: ProjectionAngles,
    params: Optional[OptimizerParams] = None,
) -> Dict:
    """
    Per-vessel foreshortening at a given C-arm pose.

    Parameters
    ----------
    directions : sequence of three 3-vectors
        Main vessel, branch 1 and branch 2 directions
    angles : ProjectionAngles
        Pose to evaluate
    params : OptimizerParams, optional
        Source of the vessel weights

    Returns
    -------
    report : dict
        ``vessels`` maps each vessel name to its visible fraction,
        foreshortening percentage and angle to the beam; ``score`` is the
        weighted sum and ``relative_score`` that sum divided by its maximum.
    """
    if params is None:
        params = OptimizerParams()
    unit = validate_vessel_directions(directions)
    weights = params.weights()
    view = viewing_direction(angles.rao_lao, angles.cranial_caudal)

    vessels = {}
    for name, direction in zip(VESSEL_NAMES, unit):
        visible = single_vessel_score(direction, view)
        cos_angle = float(np.clip(abs(np.dot(direction, view)), 0.0, 1.0))
        vessels[name] = {
            "visible_fraction": visible,
            "foreshortening_pct": 100.0 * (1.0 - visible),
            "angle_to_beam_deg": float(np.degrees(np.arccos(cos_angle))),
        }

    score = float(sum(w * vessels[name]["visible_fraction"] for w, name in zip(weights, VESSEL_NAMES)))
    return {
        "angles": angles.to_dict(),
        "vessels": vessels,
        "score": score,
        "relative_score": score / float(weights.sum()),
    }


def compare_views(
    directions: Sequence,
    current: ProjectionAngles,
    optimal: ProjectionAngles,
    params: Optional[OptimizerParams] = None,
) -> Dict:
    """Side-by-side report of the current and the recommended pose."""
    before = foreshortening_report(directions, current, params)
    after = foreshortening_report(directions, optimal, params)
    return {
        "current": before,
        "optimal": after,
        "score_gain": after["score"] - before["score"],
        "foreshortening_reduction_pct": {
            name: before["vessels"][name]["foreshortening_pct"] - after["vessels"][name]["foreshortening_pct"]
            for name in VESSEL_NAMES
        },
    }


def score_map(directions: Sequence, params: Optional[OptimizerParams] = None) -> Dict:
    """
    Full viewing-score grid for inspection or plotting.

    Returns
    -------
    dict
        ``rao_lao`` and ``cranial_caudal`` axis values and the
        ``(n_rao, n_cranial)`` ``scores`` array.
    """
    if params is None:
        params = OptimizerParams()
    rao, cranial = grid_axes(params.grid_step)
    return {
        "rao_lao": rao,
        "cranial_caudal": cranial,
        "scores": score_grid(directions, params),
    }
