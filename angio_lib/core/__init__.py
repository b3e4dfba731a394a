"""Core data structures, errors and linear algebra for bifurcation analysis."""

from .types import (
    Point2D,
    Point3D,
    Direction3D,
    ProjectionAngles,
    CenterlinePoint,
    Centerline,
    VesselSet,
    VESSEL_NAMES,
    BifurcationMethod,
    BifurcationResult,
    OptimalAngles,
)
from .result import OperationResult, OperationStatus
from .errors import (
    ErrorCode,
    AngioGeometryError,
    SingularMatrix,
    ZeroMagnitude,
    SingularSystem,
    NonFiniteResult,
    DegenerateSegment,
    InsufficientSeedPoints,
    InvalidVesselCount,
    InvalidVesselDirection,
    ParallelVessels,
    BifurcationNotFound,
    PerspectiveCorrectionFailed,
    TriangulationFailed,
    InvalidAngles,
)

__all__ = [
    "Point2D",
    "Point3D",
    "Direction3D",
    "ProjectionAngles",
    "CenterlinePoint",
    "Centerline",
    "VesselSet",
    "VESSEL_NAMES",
    "BifurcationMethod",
    "BifurcationResult",
    "OptimalAngles",
    "OperationResult",
    "OperationStatus",
    "ErrorCode",
    "AngioGeometryError",
    "SingularMatrix",
    "ZeroMagnitude",
    "SingularSystem",
    "NonFiniteResult",
    "DegenerateSegment",
    "InsufficientSeedPoints",
    "InvalidVesselCount",
    "InvalidVesselDirection",
    "ParallelVessels",
    "BifurcationNotFound",
    "PerspectiveCorrectionFailed",
    "TriangulationFailed",
    "InvalidAngles",
]
