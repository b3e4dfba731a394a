"""
3D vessel direction reconstruction from two angiographic views.

Each view contributes a direction per vessel by lifting its 2D segment through
the inverse C-arm rotation. The two estimates are averaged and renormalised.
When true point correspondences are available, ``triangulate_centerline_endpoints``
recovers 3D endpoints with a DLT solve instead.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Tuple
import numpy as np

from ..core.types import (
    Point2D,
    Point3D,
    PointLike,
    as_point,
    ProjectionAngles,
    Centerline,
    VesselSet,
    VESSEL_NAMES,
)
from ..core.errors import ZeroMagnitude, ParallelVessels, DegenerateSegment
from ..core import linalg
from ..geometry.projection import (
    angles_to_rotation,
    image_direction_to_3d,
    projection_matrix,
    triangulate_point,
)

logger = logging.getLogger(__name__)


@dataclass
class ProjectionView:
    """
    One image capture reduced to per-vessel 2D segments.

    Attributes
    ----------
    angles : ProjectionAngles
        C-arm pose of the capture
    width, height : int
        Image size in pixels
    segments : dict
        Vessel name -> (start, end) pixel coordinates
    """

    angles: ProjectionAngles
    width: int
    height: int
    segments: Dict[str, Tuple[Point2D, Point2D]] = field(default_factory=dict)

    def rotation(self) -> np.ndarray:
        """C-arm rotation matrix of this view."""
        return angles_to_rotation(self.angles.rao_lao, self.angles.cranial_caudal)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "angles": self.angles.to_dict(),
            "width": self.width,
            "height": self.height,
            "segments": {
                name: [start.to_dict(), end.to_dict()]
                for name, (start, end) in self.segments.items()
            },
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ProjectionView":
        """Create from dictionary."""
        return cls(
            angles=ProjectionAngles.from_dict(d["angles"]),
            width=d["width"],
            height=d["height"],
            segments={
                name: (Point2D.from_dict(pair[0]), Point2D.from_dict(pair[1]))
                for name, pair in d.get("segments", {}).items()
            },
        )


def reconstruct_3d_directions(view1: ProjectionView, view2: ProjectionView) -> Dict[str, np.ndarray]:
    """
    Reconstruct unit 3D directions for vessels seen in both views.

    Parameters
    ----------
    view1, view2 : ProjectionView
        Two captures at different projection angles

    Returns
    -------
    directions : dict
        Vessel name -> unit (3,) ndarray, in ``view1`` segment order. Names
        present in only one view are skipped.

    Raises
    ------
    DegenerateSegment
        If a segment has coincident endpoints.
    ZeroMagnitude
        If the two per-view estimates cancel out.
    """
    rotation1 = view1.rotation()
    rotation2 = view2.rotation()

    directions = {}
    for name, (start1, end1) in view1.segments.items():
        if name not in view2.segments:
            logger.debug("Vessel %r missing from second view, skipped", name)
            continue
        start2, end2 = view2.segments[name]
        d1 = image_direction_to_3d(start1, end1, view1.width, view1.height, rotation1)
        d2 = image_direction_to_3d(start2, end2, view2.width, view2.height, rotation2)
        try:
            directions[name] = linalg.normalize((d1 + d2) / 2.0)
        except ZeroMagnitude as e:
            raise ZeroMagnitude(f"Directions for {name!r} cancel between views") from e
    return directions


def view_from_vessel_set(
    vessels: VesselSet,
    angles: ProjectionAngles,
    width: int,
    height: int,
) -> ProjectionView:
    """Build a view from (adjusted) vessel segments, first point to last point."""
    segments = {}
    for name, centerline in vessels.items():
        if not centerline.is_usable():
            raise DegenerateSegment(f"Segment {name!r} has fewer than two points")
        segments[name] = (centerline.start, centerline.end)
    return ProjectionView(angles=angles, width=width, height=height, segments=segments)


def reconstruct_vessel_set_directions(
    view1: ProjectionView,
    view2: ProjectionView,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Reconstruct ``(main, branch1, branch2)`` directions; all three are required."""
    directions = reconstruct_3d_directions(view1, view2)
    missing = [name for name in VESSEL_NAMES if name not in directions]
    if missing:
        raise DegenerateSegment(f"No segment pair for: {', '.join(missing)}")
    return tuple(directions[name] for name in VESSEL_NAMES)


def centerline_direction_3d(
    centerline: Centerline,
    angles: ProjectionAngles,
    width: int,
    height: int,
) -> np.ndarray:
    """Single-view 3D direction of a centerline from its first and last points."""
    if not centerline.is_usable():
        raise DegenerateSegment("At least 2 centerline points required")
    rotation = angles_to_rotation(angles.rao_lao, angles.cranial_caudal)
    return image_direction_to_3d(centerline.start, centerline.end, width, height, rotation)


def triangulate_centerline_endpoints(
    start1: PointLike,
    end1: PointLike,
    angles1: ProjectionAngles,
    start2: PointLike,
    end2: PointLike,
    angles2: ProjectionAngles,
    source_distance: float = 1000.0,
    detector_distance: float = 300.0,
) -> Tuple[Point3D, Point3D]:
    """
    Triangulate a vessel segment's 3D endpoints from corresponding points.

    Points are detector-plane millimetres in each view's pinhole camera (see
    ``projection_matrix``).
    """
    cam1 = projection_matrix(angles1.rao_lao, angles1.cranial_caudal, source_distance, detector_distance)
    cam2 = projection_matrix(angles2.rao_lao, angles2.cranial_caudal, source_distance, detector_distance)
    start = triangulate_point(as_point(start1), as_point(start2), cam1, cam2)
    end = triangulate_point(as_point(end1), as_point(end2), cam1, cam2)
    return start, end


def _normalized_cross(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    try:
        return linalg.normalize(linalg.cross(a, b))
    except ZeroMagnitude as e:
        raise ParallelVessels("Vessel directions are parallel") from e


def bifurcation_plane_normal(main, branch1, branch2) -> np.ndarray:
    """Unit normal of the plane through the three direction tips."""
    m = np.asarray(main, dtype=float)
    return _normalized_cross(np.asarray(branch1, dtype=float) - m, np.asarray(branch2, dtype=float) - m)


def plane_normal(d1, d2) -> np.ndarray:
    """Unit normal of the plane spanned by two directions."""
    return _normalized_cross(np.asarray(d1, dtype=float), np.asarray(d2, dtype=float))
