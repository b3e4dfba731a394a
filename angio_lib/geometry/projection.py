"""
C-arm projection geometry.

All rotation, axis and sign conventions for the package live here.

Conventions
-----------
- RAO/LAO is a rotation about the patient Z (head-foot) axis, positive = RAO.
- Cranial/caudal is a rotation about the patient X (left-right) axis,
  positive = cranial.
- The combined rotation is always ``R = R_cranial @ R_rao_lao``.
- Image coordinates are pixels with the origin top-left and Y pointing down.
  Normalized coordinates are in ``[-1, 1]`` with Y pointing up.
- Angles are degrees at every public boundary and radians internally.
"""

import math
from typing import Tuple, Union
import numpy as np

from ..core.types import Point2D, Point3D, PointLike, as_point, RAO_LAO_RANGE, CRANIAL_CAUDAL_RANGE
from ..core.errors import DegenerateSegment, TriangulationFailed
from ..core import linalg

DEFAULT_SOURCE_DISTANCE = 1000.0
DEFAULT_DETECTOR_DISTANCE = 300.0
POINT_AT_INFINITY_TOLERANCE = 1e-12


def round_angle(value: float) -> float:
    """Round half away from zero to one decimal, never returning -0.0."""
    rounded = math.floor(abs(value) * 10.0 + 0.5) / 10.0
    return math.copysign(rounded, value) + 0.0


def rao_lao_rotation(rao_lao: float) -> np.ndarray:
    """Rotation about Z by the RAO/LAO angle (degrees)."""
    r = math.radians(rao_lao)
    c, s = math.cos(r), math.sin(r)
    return np.array([
        [c, -s, 0.0],
        [s, c, 0.0],
        [0.0, 0.0, 1.0],
    ])


def cranial_caudal_rotation(cranial_caudal: float) -> np.ndarray:
    """Rotation about X by the cranial/caudal angle (degrees)."""
    r = math.radians(cranial_caudal)
    c, s = math.cos(r), math.sin(r)
    return np.array([
        [1.0, 0.0, 0.0],
        [0.0, c, -s],
        [0.0, s, c],
    ])


def angles_to_rotation(rao_lao: float, cranial_caudal: float) -> np.ndarray:
    """
    Build the C-arm rotation matrix for a pair of projection angles.

    Parameters
    ----------
    rao_lao : float
        RAO (+) / LAO (-) angle in degrees
    cranial_caudal : float
        Cranial (+) / caudal (-) angle in degrees

    Returns
    -------
    R : (3, 3) ndarray
        Orthonormal rotation ``R_cranial @ R_rao_lao``.
    """
    return linalg.multiply3x3(
        cranial_caudal_rotation(cranial_caudal),
        rao_lao_rotation(rao_lao),
    )


def image_to_normalized(point: PointLike, width: float, height: float) -> Point2D:
    """Map a pixel coordinate into the ``[-1, 1]`` frame, flipping Y."""
    p = as_point(point)
    return Point2D(2.0 * p.x / width - 1.0, 1.0 - 2.0 * p.y / height)


def normalized_to_image(point: PointLike, width: float, height: float) -> Point2D:
    """Inverse of :func:`image_to_normalized`."""
    p = as_point(point)
    return Point2D((p.x + 1.0) * width / 2.0, (1.0 - p.y) * height / 2.0)


def image_direction_to_3d(
    p1: PointLike,
    p2: PointLike,
    width: float,
    height: float,
    rotation: np.ndarray,
) -> np.ndarray:
    """
    Lift an image-plane segment to a unit direction in patient space.

    The segment ``p1 -> p2`` is normalized, placed in the detector plane
    (Z = 0) and rotated back into patient space with ``R^T``.

    Raises
    ------
    DegenerateSegment
        If ``p1`` and ``p2`` coincide.
    """
    n1 = image_to_normalized(p1, width, height)
    n2 = image_to_normalized(p2, width, height)
    direction_2d = np.array([n2.x - n1.x, n2.y - n1.y, 0.0])
    if linalg.norm(direction_2d) < linalg.MAGNITUDE_TOLERANCE:
        raise DegenerateSegment(
            f"Segment endpoints coincide at ({as_point(p1).x}, {as_point(p1).y})"
        )
    direction_3d = linalg.mat_vec(linalg.transpose3x3(rotation), direction_2d)
    return linalg.normalize(direction_3d)


def viewing_direction(rao_lao: float, cranial_caudal: float) -> np.ndarray:
    """
    Unit vector from the patient toward the detector.

    At AP (0, 0) this is +Y; RAO swings it toward -X and cranial toward +Z.
    """
    r = math.radians(rao_lao)
    c = math.radians(cranial_caudal)
    return np.array([
        -math.sin(r) * math.cos(c),
        math.cos(r) * math.cos(c),
        math.sin(c),
    ])


def normal_to_angles(normal) -> Tuple[float, float]:
    """
    Convert a plane normal (viewing axis) to projection angles.

    RAO/LAO is folded into ``[-90, 90]`` by +-180 degrees and cranial/caudal is
    clamped to ``[-45, 45]``, so the mapping is lossy outside those ranges.
    Results are rounded to one decimal.

    Returns
    -------
    (rao_lao, cranial_caudal) : tuple of float
    """
    n = linalg.normalize(normal)
    nx, ny, nz = n
    rao_lao = math.degrees(math.atan2(-nx, ny))
    cranial_caudal = math.degrees(math.asin(float(np.clip(nz, -1.0, 1.0))))

    if rao_lao > RAO_LAO_RANGE[1]:
        rao_lao -= 180.0
    if rao_lao < RAO_LAO_RANGE[0]:
        rao_lao += 180.0
    cranial_caudal = max(CRANIAL_CAUDAL_RANGE[0], min(CRANIAL_CAUDAL_RANGE[1], cranial_caudal))

    return round_angle(rao_lao), round_angle(cranial_caudal)


def projection_matrix(
    rao_lao: float,
    cranial_caudal: float,
    source_distance: float = DEFAULT_SOURCE_DISTANCE,
    detector_distance: float = DEFAULT_DETECTOR_DISTANCE,
) -> np.ndarray:
    """
    Idealised isocentric pinhole camera ``P = K [R | t]``.

    The X-ray source sits ``source_distance`` mm from the isocenter and the
    detector a further ``detector_distance`` mm behind it. Projected points are
    detector-plane millimetres.

    Returns
    -------
    P : (3, 4) ndarray
    """
    if source_distance <= 0 or detector_distance < 0:
        raise ValueError("source_distance must be positive and detector_distance non-negative")
    focal = source_distance + detector_distance
    k = np.diag([focal, focal, 1.0])
    rotation = angles_to_rotation(rao_lao, cranial_caudal)
    translation = np.array([0.0, 0.0, source_distance])
    return k @ np.hstack([rotation, translation[:, None]])


def project_point(point: Union[Point3D, np.ndarray], p: np.ndarray) -> Point2D:
    """Project a 3D point with a 3x4 camera matrix."""
    xyz = point.to_array() if isinstance(point, Point3D) else np.asarray(point, dtype=float)
    homogeneous = np.asarray(p, dtype=float) @ np.append(xyz, 1.0)
    if abs(homogeneous[2]) < POINT_AT_INFINITY_TOLERANCE:
        raise TriangulationFailed("Point projects to infinity")
    return Point2D(float(homogeneous[0] / homogeneous[2]), float(homogeneous[1] / homogeneous[2]))


def triangulate_point(p1: PointLike, p2: PointLike, cam1: np.ndarray, cam2: np.ndarray) -> Point3D:
    """
    Recover a 3D point from its projections in two views (linear DLT).

    Parameters
    ----------
    p1, p2 : Point2D or (x, y)
        Corresponding projections in the two views
    cam1, cam2 : (3, 4) ndarray
        Camera matrices of the views

    Raises
    ------
    TriangulationFailed
        If the homogeneous solution lies at infinity.
    """
    a1 = as_point(p1)
    a2 = as_point(p2)
    cam1 = np.asarray(cam1, dtype=float)
    cam2 = np.asarray(cam2, dtype=float)
    system = np.array([
        a1.x * cam1[2] - cam1[0],
        a1.y * cam1[2] - cam1[1],
        a2.x * cam2[2] - cam2[0],
        a2.y * cam2[2] - cam2[1],
    ])
    solution = linalg.solve_dlt(system)
    w = solution[3]
    if abs(w) < POINT_AT_INFINITY_TOLERANCE:
        raise TriangulationFailed("Point at infinity")
    xyz = linalg.ensure_finite(solution[:3] / w, "triangulated point")
    return Point3D.from_array(xyz)


def angle_between_vectors_2d(v1: PointLike, v2: PointLike) -> float:
    """Unsigned angle between two 2D vectors in degrees; 0 if either is zero."""
    a = as_point(v1).to_array()
    b = as_point(v2).to_array()
    mag_a = np.linalg.norm(a)
    mag_b = np.linalg.norm(b)
    if mag_a == 0 or mag_b == 0:
        return 0.0
    cos_angle = np.clip(np.dot(a, b) / (mag_a * mag_b), -1.0, 1.0)
    return float(np.degrees(np.arccos(cos_angle)))


def angle_from_horizontal(dx: float, dy: float) -> float:
    """Signed angle of ``(dx, dy)`` from the +X axis in degrees, one decimal."""
    return round_angle(math.degrees(math.atan2(dy, dx)))
