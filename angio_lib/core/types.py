"""
Geometric primitive types for angiographic bifurcation analysis.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, NamedTuple, Tuple, Union
import numpy as np

from .errors import ZeroMagnitude, InvalidAngles

RAO_LAO_RANGE = (-90.0, 90.0)
CRANIAL_CAUDAL_RANGE = (-45.0, 45.0)


@dataclass(frozen=True)
class Point2D:
    """Pixel or normalized image-plane coordinate."""

    x: float
    y: float

    def to_array(self) -> np.ndarray:
        """Convert to numpy array."""
        return np.array([self.x, self.y], dtype=float)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "Point2D":
        """Create from numpy array."""
        return cls(float(arr[0]), float(arr[1]))

    def to_tuple(self) -> Tuple[float, float]:
        """Convert to tuple."""
        return (self.x, self.y)

    def distance_to(self, other: "Point2D") -> float:
        """Compute Euclidean distance to another point."""
        return float(np.hypot(self.x - other.x, self.y - other.y))

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, d: dict) -> "Point2D":
        """Create from dictionary."""
        return cls(d["x"], d["y"])


PointLike = Union[Point2D, Tuple[float, float], np.ndarray]


def as_point(p: PointLike) -> Point2D:
    """Coerce a tuple, array or Point2D into a Point2D."""
    if isinstance(p, Point2D):
        return p
    if hasattr(p, "x") and hasattr(p, "y"):
        return Point2D(float(p.x), float(p.y))
    return Point2D(float(p[0]), float(p[1]))


@dataclass
class Point3D:
    """3D point in patient space."""

    x: float
    y: float
    z: float

    def to_array(self) -> np.ndarray:
        """Convert to numpy array."""
        return np.array([self.x, self.y, self.z], dtype=float)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "Point3D":
        """Create from numpy array."""
        return cls(float(arr[0]), float(arr[1]), float(arr[2]))

    def to_tuple(self) -> Tuple[float, float, float]:
        """Convert to tuple."""
        return (self.x, self.y, self.z)

    def distance_to(self, other: "Point3D") -> float:
        """Compute Euclidean distance to another point."""
        return float(np.linalg.norm(self.to_array() - other.to_array()))

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {"x": self.x, "y": self.y, "z": self.z}

    @classmethod
    def from_dict(cls, d: dict) -> "Point3D":
        """Create from dictionary."""
        return cls(d["x"], d["y"], d["z"])


@dataclass
class Direction3D:
    """3D direction vector (unit vector) in patient space."""

    dx: float
    dy: float
    dz: float

    def __post_init__(self):
        """Normalize on creation."""
        self.normalize()

    def normalize(self) -> None:
        """Normalize to unit length."""
        length = float(np.sqrt(self.dx**2 + self.dy**2 + self.dz**2))
        if not np.isfinite(length) or length < 1e-10:
            raise ZeroMagnitude("Cannot normalize zero-length vector")
        self.dx /= length
        self.dy /= length
        self.dz /= length

    def to_array(self) -> np.ndarray:
        """Convert to numpy array."""
        return np.array([self.dx, self.dy, self.dz], dtype=float)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "Direction3D":
        """Create from numpy array (will be normalized)."""
        return cls(float(arr[0]), float(arr[1]), float(arr[2]))

    def to_tuple(self) -> Tuple[float, float, float]:
        """Convert to tuple."""
        return (self.dx, self.dy, self.dz)

    def dot(self, other: "Direction3D") -> float:
        """Compute dot product with another direction."""
        return self.dx * other.dx + self.dy * other.dy + self.dz * other.dz

    def cross(self, other: "Direction3D") -> "Direction3D":
        """Compute cross product with another direction."""
        cx = self.dy * other.dz - self.dz * other.dy
        cy = self.dz * other.dx - self.dx * other.dz
        cz = self.dx * other.dy - self.dy * other.dx
        return Direction3D(cx, cy, cz)

    def angle_to(self, other: "Direction3D") -> float:
        """Compute angle to another direction in radians."""
        dot_product = np.clip(self.dot(other), -1.0, 1.0)
        return float(np.arccos(dot_product))

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {"dx": self.dx, "dy": self.dy, "dz": self.dz}

    @classmethod
    def from_dict(cls, d: dict) -> "Direction3D":
        """Create from dictionary."""
        return cls(d["dx"], d["dy"], d["dz"])


@dataclass(frozen=True)
class ProjectionAngles:
    """
    C-arm pose for one image capture.

    Positive ``rao_lao`` is RAO, negative is LAO. Positive ``cranial_caudal``
    is cranial, negative is caudal. Both in degrees.
    """

    rao_lao: float
    cranial_caudal: float

    def __post_init__(self):
        lo, hi = RAO_LAO_RANGE
        if not (np.isfinite(self.rao_lao) and lo <= self.rao_lao <= hi):
            raise InvalidAngles(f"rao_lao={self.rao_lao} outside [{lo}, {hi}]")
        lo, hi = CRANIAL_CAUDAL_RANGE
        if not (np.isfinite(self.cranial_caudal) and lo <= self.cranial_caudal <= hi):
            raise InvalidAngles(f"cranial_caudal={self.cranial_caudal} outside [{lo}, {hi}]")

    def to_tuple(self) -> Tuple[float, float]:
        """Convert to tuple."""
        return (self.rao_lao, self.cranial_caudal)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {"rao_lao": self.rao_lao, "cranial_caudal": self.cranial_caudal}

    @classmethod
    def from_dict(cls, d: dict) -> "ProjectionAngles":
        """Create from dictionary."""
        return cls(d["rao_lao"], d["cranial_caudal"])


@dataclass(frozen=True)
class CenterlinePoint:
    """Centerline sample with the (inverted) intensity found there."""

    x: float
    y: float
    intensity: float = 0.0

    def to_point(self) -> Point2D:
        return Point2D(self.x, self.y)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "intensity": self.intensity}


@dataclass(frozen=True)
class Centerline:
    """
    Ordered sequence of points tracing a vessel's medial axis.

    Ordering follows the traversal from one seed to the next, which is not
    necessarily proximal to distal.
    """

    points: Tuple[CenterlinePoint, ...] = field(default_factory=tuple)

    @classmethod
    def from_points(cls, points: Iterable[Union[PointLike, CenterlinePoint]]) -> "Centerline":
        """Build from Point2D, CenterlinePoint or (x, y) pairs."""
        converted = []
        for p in points:
            if isinstance(p, CenterlinePoint):
                converted.append(p)
            else:
                pt = as_point(p)
                converted.append(CenterlinePoint(pt.x, pt.y))
        return cls(tuple(converted))

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[CenterlinePoint]:
        return iter(self.points)

    def __getitem__(self, index):
        return self.points[index]

    def is_usable(self) -> bool:
        """A centerline needs at least two points to define a direction."""
        return len(self.points) >= 2

    @property
    def start(self) -> Point2D:
        return self.points[0].to_point()

    @property
    def end(self) -> Point2D:
        return self.points[-1].to_point()

    def to_array(self) -> np.ndarray:
        """(N, 2) array of x, y coordinates."""
        if not self.points:
            return np.zeros((0, 2))
        return np.array([[p.x, p.y] for p in self.points], dtype=float)

    def intensities(self) -> np.ndarray:
        return np.array([p.intensity for p in self.points], dtype=float)

    def length(self) -> float:
        """Polyline length in pixels."""
        arr = self.to_array()
        if len(arr) < 2:
            return 0.0
        return float(np.linalg.norm(np.diff(arr, axis=0), axis=1).sum())

    def to_dict(self) -> dict:
        return {"points": [p.to_dict() for p in self.points]}

    @classmethod
    def from_dict(cls, d: dict) -> "Centerline":
        return cls(tuple(
            CenterlinePoint(p["x"], p["y"], p.get("intensity", 0.0)) for p in d.get("points", [])
        ))


VESSEL_NAMES = ("main", "branch1", "branch2")


class VesselSet(NamedTuple):
    """The three vessels of one bifurcation as seen in a single image."""

    main: Centerline
    branch1: Centerline
    branch2: Centerline

    def items(self) -> List[Tuple[str, Centerline]]:
        return list(zip(VESSEL_NAMES, self))

    def to_dict(self) -> dict:
        return {name: c.to_dict() for name, c in self.items()}

    @classmethod
    def from_dict(cls, d: dict) -> "VesselSet":
        return cls(*(Centerline.from_dict(d[name]) for name in VESSEL_NAMES))


class BifurcationMethod(Enum):
    """Estimator that produced a bifurcation point."""
    CLOSEST_APPROACH = "closest_approach"
    INTERSECTION = "intersection"
    CENTROID = "centroid"


@dataclass(frozen=True)
class BifurcationResult:
    """Located bifurcation and the short segments re-derived from it."""

    point: Point2D
    method: BifurcationMethod
    confidence: float
    adjusted_segments: VesselSet

    def to_dict(self) -> dict:
        return {
            "point": self.point.to_dict(),
            "method": self.method.value,
            "confidence": self.confidence,
            "adjusted_segments": self.adjusted_segments.to_dict(),
        }


@dataclass(frozen=True)
class OptimalAngles:
    """
    Recommended viewing angles.

    ``score`` grows with total un-foreshortened projected vessel length. It is
    not normalized and only comparable within one optimization run.
    """

    rao_lao: float
    cranial_caudal: float
    score: float

    def to_angles(self) -> ProjectionAngles:
        return ProjectionAngles(self.rao_lao, self.cranial_caudal)

    def to_dict(self) -> dict:
        return {
            "rao_lao": self.rao_lao,
            "cranial_caudal": self.cranial_caudal,
            "score": self.score,
        }
