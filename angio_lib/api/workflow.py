"""Two-view bifurcation workflow.

This module provides analyze_two_views(), which chains perspective
correction, centerline tracking, bifurcation localisation, 3D reconstruction
and angle optimisation for two captures, and reports the outcome as an
OperationResult.

The computational core raises on degenerate input. This is the layer where
fallbacks live and where exceptions become structured failures.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
import numpy as np

from ..core.types import PointLike, ProjectionAngles, VESSEL_NAMES, BifurcationResult
from ..core.errors import AngioGeometryError, PerspectiveCorrectionFailed, ParallelVessels
from ..core.result import OperationResult
from ..imaging.perspective import correct_perspective
from ..imaging.intensity import create_intensity_map
from ..ops.tracking import extract_vessel_set
from ..ops.bifurcation import locate_bifurcation
from ..ops.reconstruction import ProjectionView, view_from_vessel_set, reconstruct_vessel_set_directions
from ..ops.optimizer import optimal_angles, plane_normal_angles
from ..analysis.foreshortening import foreshortening_report
from ..params.presets import AnalysisParams
from ..params.validation import validate_and_warn
from ..utils.timing import timed_stage

logger = logging.getLogger(__name__)


@dataclass
class ImageCapture:
    """
    One angiographic image with its C-arm pose and user seeds.

    Attributes
    ----------
    image : ndarray
        ``(H, W)`` grayscale or ``(H, W, 3|4)`` RGB(A) image
    angles : ProjectionAngles
        Pose the image was acquired at
    seeds_by_vessel : dict
        ``main``, ``branch1`` and ``branch2`` -> ordered seed points
    """

    image: np.ndarray
    angles: ProjectionAngles
    seeds_by_vessel: Dict[str, Sequence[PointLike]] = field(default_factory=dict)

    @property
    def width(self) -> int:
        return int(np.asarray(self.image).shape[1])

    @property
    def height(self) -> int:
        return int(np.asarray(self.image).shape[0])


def _process_capture(
    index: int,
    capture: ImageCapture,
    params: AnalysisParams,
    warnings: List[str],
    timings: Dict[str, float],
) -> Tuple[ProjectionView, BifurcationResult]:
    image = capture.image
    if params.correct_perspective:
        with timed_stage(f"perspective_{index}", timings):
            try:
                image = correct_perspective(image, params.perspective)
            except PerspectiveCorrectionFailed as e:
                logger.warning("Image %d: %s, using original image", index, e.message)
                warnings.append(f"Image {index}: perspective correction failed ({e.message}), original image used")
                image = capture.image

    with timed_stage(f"tracking_{index}", timings):
        field_map = create_intensity_map(image)
        vessels = extract_vessel_set(field_map, capture.seeds_by_vessel, params.tracking)

    with timed_stage(f"bifurcation_{index}", timings):
        bifurcation = locate_bifurcation(*vessels, params=params.bifurcation)

    view = view_from_vessel_set(bifurcation.adjusted_segments, capture.angles, capture.width, capture.height)
    return view, bifurcation


def analyze_two_views(
    capture1: ImageCapture,
    capture2: ImageCapture,
    params: Optional[AnalysisParams] = None,
) -> OperationResult:
    """
    Recommend viewing angles from two captures of the same bifurcation.

    Parameters
    ----------
    capture1, capture2 : ImageCapture
        Captures at two different projection angles
    params : AnalysisParams, optional
        Analysis parameters. If None, uses the reference preset

    Returns
    -------
    result : OperationResult
        On success ``metadata`` contains:
        - optimal: OptimalAngles as dict
        - plane_normal_angles: closed-form angles or None
        - bifurcations: per-image BifurcationResult dicts
        - directions: vessel name -> unit 3D direction
        - current_views: foreshortening report of each capture pose
        - timing: seconds per stage
        On failure ``error_codes`` carries the core error code.
    """
    if params is None:
        params = AnalysisParams()
    validate_and_warn(params)

    warnings: List[str] = []
    timings: Dict[str, float] = {}

    if capture1.angles == capture2.angles:
        warnings.append("Both captures share the same projection angles; depth cannot be resolved")

    try:
        view1, bif1 = _process_capture(1, capture1, params, warnings, timings)
        view2, bif2 = _process_capture(2, capture2, params, warnings, timings)

        with timed_stage("optimization", timings):
            directions = reconstruct_vessel_set_directions(view1, view2)
            optimal = optimal_angles(directions, params.optimizer)

        try:
            plane_angles = plane_normal_angles(directions)
        except ParallelVessels as e:
            warnings.append(f"No bifurcation plane: {e.message}")
            plane_angles = None

    except AngioGeometryError as e:
        logger.error("Two-view analysis failed: %s (%s)", e.message, e.code.value)
        result = OperationResult.from_exception(e, warnings=warnings)
        result.metadata["timing"] = timings
        return result

    metadata = {
        "optimal": optimal.to_dict(),
        "plane_normal_angles": list(plane_angles) if plane_angles is not None else None,
        "bifurcations": [bif1.to_dict(), bif2.to_dict()],
        "directions": {name: d.tolist() for name, d in zip(VESSEL_NAMES, directions)},
        "current_views": [
            foreshortening_report(directions, capture1.angles, params.optimizer),
            foreshortening_report(directions, capture2.angles, params.optimizer),
        ],
        "timing": timings,
    }
    message = f"Optimal view {optimal.rao_lao:.1f} RAO/LAO, {optimal.cranial_caudal:.1f} CRA/CAU"

    if warnings:
        return OperationResult.partial_success(message, warnings=warnings, metadata=metadata)
    return OperationResult.success(message, metadata=metadata)
