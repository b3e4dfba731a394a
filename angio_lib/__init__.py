"""
Angio View Library - C-arm viewing angle recommendation for coronary bifurcations

Given two angiograms of the same bifurcation taken at known projection angles,
the library reconstructs the 3D directions of the main vessel and both
branches and recommends the RAO/LAO and cranial/caudal angles that show all
three with the least foreshortening.

Key Features:
- Perspective correction for photographed monitor images
- Seed-guided centerline tracking and bifurcation localisation
- Two-view 3D direction reconstruction and DLT triangulation
- Grid search plus local refinement over the C-arm range
- Structured results with status, warnings and error codes

Example Usage:
    from angio_lib import ProjectionAngles, ImageCapture, analyze_two_views

    capture1 = ImageCapture(image1, ProjectionAngles(30, 20), seeds1)
    capture2 = ImageCapture(image2, ProjectionAngles(-30, 20), seeds2)

    result = analyze_two_views(capture1, capture2)
    if result.is_success():
        print(result.metadata["optimal"])
"""

__version__ = "1.0.0"

from .core.types import (
    Point2D,
    Point3D,
    Direction3D,
    ProjectionAngles,
    CenterlinePoint,
    Centerline,
    VesselSet,
    BifurcationMethod,
    BifurcationResult,
    OptimalAngles,
)
from .core.result import OperationResult, OperationStatus
from .core.errors import ErrorCode, AngioGeometryError

from .geometry.projection import (
    angles_to_rotation,
    image_direction_to_3d,
    normal_to_angles,
    viewing_direction,
    projection_matrix,
    triangulate_point,
)

from .imaging.perspective import correct_perspective
from .imaging.intensity import create_intensity_map

from .ops.tracking import extract_centerline, extract_vessel_set
from .ops.bifurcation import locate_bifurcation
from .ops.reconstruction import ProjectionView, reconstruct_3d_directions
from .ops.optimizer import optimal_angles, viewing_score, plane_normal_angles

from .analysis.foreshortening import foreshortening_report, compare_views, score_map

from .api.workflow import ImageCapture, analyze_two_views

__all__ = [
    "Point2D",
    "Point3D",
    "Direction3D",
    "ProjectionAngles",
    "CenterlinePoint",
    "Centerline",
    "VesselSet",
    "BifurcationMethod",
    "BifurcationResult",
    "OptimalAngles",
    "OperationResult",
    "OperationStatus",
    "ErrorCode",
    "AngioGeometryError",
    "angles_to_rotation",
    "image_direction_to_3d",
    "normal_to_angles",
    "viewing_direction",
    "projection_matrix",
    "triangulate_point",
    "correct_perspective",
    "create_intensity_map",
    "extract_centerline",
    "extract_vessel_set",
    "locate_bifurcation",
    "ProjectionView",
    "reconstruct_3d_directions",
    "optimal_angles",
    "viewing_score",
    "plane_normal_angles",
    "foreshortening_report",
    "compare_views",
    "score_map",
    "ImageCapture",
    "analyze_two_views",
]
