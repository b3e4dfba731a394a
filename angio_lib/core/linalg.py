"""
Small dense linear algebra used by the projection and imaging code.

All functions are pure: they accept array-likes, return new numpy arrays and
raise an ``AngioGeometryError`` subclass on degenerate input instead of
returning NaN or Inf.
"""

from typing import Sequence, Union
import numpy as np
from scipy import linalg as sla

from .errors import SingularMatrix, ZeroMagnitude, SingularSystem, NonFiniteResult

ArrayLike = Union[np.ndarray, Sequence[float], Sequence[Sequence[float]]]

DET_TOLERANCE = 1e-10
MAGNITUDE_TOLERANCE = 1e-10
PIVOT_TOLERANCE = 1e-12


def _as_matrix3(m: ArrayLike) -> np.ndarray:
    arr = np.asarray(m, dtype=float)
    if arr.shape != (3, 3):
        raise ValueError(f"Expected a 3x3 matrix, got shape {arr.shape}")
    return arr


def _as_vector3(v: ArrayLike) -> np.ndarray:
    arr = np.asarray(v, dtype=float).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got shape {arr.shape}")
    return arr


def ensure_finite(value: ArrayLike, what: str = "result") -> np.ndarray:
    """Return ``value`` as an array, raising NonFiniteResult on NaN/Inf."""
    arr = np.asarray(value, dtype=float)
    if not np.all(np.isfinite(arr)):
        raise NonFiniteResult(f"Non-finite values in {what}")
    return arr


def multiply3x3(a: ArrayLike, b: ArrayLike) -> np.ndarray:
    """Matrix product of two 3x3 matrices."""
    return _as_matrix3(a) @ _as_matrix3(b)


def transpose3x3(m: ArrayLike) -> np.ndarray:
    """Transpose of a 3x3 matrix."""
    return _as_matrix3(m).T.copy()


def mat_vec(m: ArrayLike, v: ArrayLike) -> np.ndarray:
    """Apply a 3x3 matrix to a 3-vector."""
    return _as_matrix3(m) @ _as_vector3(v)


def determinant3x3(m: ArrayLike) -> float:
    """Determinant by cofactor expansion along the first row."""
    (a, b, c), (d, e, f), (g, h, i) = _as_matrix3(m)
    return float(a * (e * i - f * h) - b * (d * i - f * g) + c * (d * h - e * g))


def invert3x3(m: ArrayLike) -> np.ndarray:
    """
    Invert a 3x3 matrix using the adjugate.

    Raises
    ------
    SingularMatrix
        If ``|det(m)| < 1e-10``.
    """
    (a, b, c), (d, e, f), (g, h, i) = _as_matrix3(m)
    det = determinant3x3(m)
    if abs(det) < DET_TOLERANCE:
        raise SingularMatrix(f"Matrix is not invertible (det={det:.3e})")

    adjugate = np.array([
        [e * i - f * h, c * h - b * i, b * f - c * e],
        [f * g - d * i, a * i - c * g, c * d - a * f],
        [d * h - e * g, b * g - a * h, a * e - b * d],
    ])
    return adjugate / det


def norm(v: ArrayLike) -> float:
    """Euclidean length."""
    return float(np.linalg.norm(np.asarray(v, dtype=float)))


def normalize(v: ArrayLike) -> np.ndarray:
    """
    Scale a vector to unit length.

    Raises
    ------
    ZeroMagnitude
        If the vector length is below 1e-10.
    """
    arr = np.asarray(v, dtype=float).reshape(-1)
    length = float(np.linalg.norm(arr))
    if not np.isfinite(length) or length < MAGNITUDE_TOLERANCE:
        raise ZeroMagnitude("Cannot normalize zero-length vector")
    return arr / length


def cross(a: ArrayLike, b: ArrayLike) -> np.ndarray:
    """Cross product of two 3-vectors."""
    return np.cross(_as_vector3(a), _as_vector3(b))


def dot(a: ArrayLike, b: ArrayLike) -> float:
    """Dot product of two vectors of equal length."""
    return float(np.dot(np.asarray(a, dtype=float).reshape(-1), np.asarray(b, dtype=float).reshape(-1)))


def solve_linear_system(a: ArrayLike, b: ArrayLike) -> np.ndarray:
    """
    Solve ``a x = b`` by Gaussian elimination with partial pivoting.

    Parameters
    ----------
    a : (n, n) array
        Coefficient matrix
    b : (n,) array
        Right-hand side

    Returns
    -------
    x : (n,) ndarray
        Solution vector

    Raises
    ------
    SingularSystem
        If a pivot is numerically zero after the row swap search.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float).reshape(-1)
    n = a.shape[0]
    if a.shape != (n, n) or b.shape != (n,):
        raise ValueError(f"Incompatible system shapes {a.shape} and {b.shape}")

    augmented = np.hstack([a, b[:, None]])
    scale = max(float(np.abs(a).max()), 1.0)

    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(augmented[col:, col])))
        if abs(augmented[pivot_row, col]) < PIVOT_TOLERANCE * scale:
            raise SingularSystem(f"Zero pivot in column {col}")
        if pivot_row != col:
            augmented[[col, pivot_row]] = augmented[[pivot_row, col]]

        factors = augmented[col + 1:, col] / augmented[col, col]
        augmented[col + 1:, col:] -= factors[:, None] * augmented[col, col:]

    x = np.zeros(n)
    for row in range(n - 1, -1, -1):
        x[row] = (augmented[row, n] - augmented[row, row + 1:n] @ x[row + 1:]) / augmented[row, row]

    return ensure_finite(x, "linear system solution")


def solve_least_squares(a: ArrayLike, b: ArrayLike) -> np.ndarray:
    """
    Least-squares solution of ``a x = b`` via the normal equations.

    ``(aᵀa) x = aᵀb`` is solved with ``solve_linear_system``.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float).reshape(-1)
    return solve_linear_system(a.T @ a, a.T @ b)


def solve_dlt(a: ArrayLike) -> np.ndarray:
    """
    Homogeneous least-squares solution of ``a x = 0`` with ``|x| = 1``.

    Uses the right singular vector belonging to the smallest singular value.
    """
    a = ensure_finite(a, "DLT matrix")
    if a.ndim != 2 or a.shape[0] < a.shape[1] - 1:
        raise ValueError(f"DLT matrix must be 2D with enough rows, got shape {a.shape}")
    _, _, vt = sla.svd(a)
    return vt[-1]
