"""
Error codes and exceptions raised by the geometry and optimization core.

Every exception carries an ``ErrorCode`` so the workflow layer can report it
in an ``OperationResult`` without inspecting message text.
"""

from enum import Enum


class ErrorCode(Enum):
    """Standard error codes for structured feedback."""
    SINGULAR_MATRIX = "SINGULAR_MATRIX"
    ZERO_MAGNITUDE = "ZERO_MAGNITUDE"
    SINGULAR_SYSTEM = "SINGULAR_SYSTEM"
    DEGENERATE_SEGMENT = "DEGENERATE_SEGMENT"
    INSUFFICIENT_SEED_POINTS = "INSUFFICIENT_SEED_POINTS"
    INVALID_VESSEL_COUNT = "INVALID_VESSEL_COUNT"
    INVALID_VESSEL_DIRECTION = "INVALID_VESSEL_DIRECTION"
    PARALLEL_VESSELS = "PARALLEL_VESSELS"
    BIFURCATION_NOT_FOUND = "BIFURCATION_NOT_FOUND"
    PERSPECTIVE_CORRECTION_FAILED = "PERSPECTIVE_CORRECTION_FAILED"
    TRIANGULATION_FAILED = "TRIANGULATION_FAILED"
    INVALID_ANGLES = "INVALID_ANGLES"
    NON_FINITE_RESULT = "NON_FINITE_RESULT"
    INVALID_PARAMETER = "INVALID_PARAMETER"


class AngioGeometryError(ValueError):
    """Base class for all errors raised by angio_lib computations."""

    code: ErrorCode = ErrorCode.INVALID_PARAMETER

    def __init__(self, message: str = ""):
        super().__init__(message or self.code.value)
        self.message = message or self.code.value

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {"code": self.code.value, "message": self.message}


class SingularMatrix(AngioGeometryError):
    """3x3 matrix with |det| below tolerance."""
    code = ErrorCode.SINGULAR_MATRIX


class ZeroMagnitude(AngioGeometryError):
    """Vector of (numerically) zero length where a direction was required."""
    code = ErrorCode.ZERO_MAGNITUDE


class SingularSystem(AngioGeometryError):
    """Linear system whose pivot vanished during elimination."""
    code = ErrorCode.SINGULAR_SYSTEM


class NonFiniteResult(AngioGeometryError):
    """A NaN or Inf reached a value that is about to be returned."""
    code = ErrorCode.NON_FINITE_RESULT


class DegenerateSegment(AngioGeometryError):
    """Two coincident image points where a direction was required."""
    code = ErrorCode.DEGENERATE_SEGMENT


class InsufficientSeedPoints(AngioGeometryError):
    """Fewer than two seed points supplied for centerline extraction."""
    code = ErrorCode.INSUFFICIENT_SEED_POINTS


class InvalidVesselCount(AngioGeometryError):
    """The optimizer needs exactly three vessel directions."""
    code = ErrorCode.INVALID_VESSEL_COUNT


class InvalidVesselDirection(AngioGeometryError):
    """A vessel direction is not a finite 3-vector."""
    code = ErrorCode.INVALID_VESSEL_DIRECTION


class ParallelVessels(AngioGeometryError):
    """Vessel directions are parallel, so no bifurcation plane exists."""
    code = ErrorCode.PARALLEL_VESSELS


class BifurcationNotFound(AngioGeometryError):
    """No estimator produced a bifurcation candidate."""
    code = ErrorCode.BIFURCATION_NOT_FOUND


class PerspectiveCorrectionFailed(AngioGeometryError):
    """Homography could not be estimated or inverted."""
    code = ErrorCode.PERSPECTIVE_CORRECTION_FAILED


class TriangulationFailed(AngioGeometryError):
    """DLT solution lies at infinity."""
    code = ErrorCode.TRIANGULATION_FAILED


class InvalidAngles(AngioGeometryError):
    """Projection angles outside the C-arm range."""
    code = ErrorCode.INVALID_ANGLES
