"""
Perspective correction for photographs of an angiography monitor.

The monitor frame is located with a simplified Harris detector, a homography
maps the frame onto an upright rectangle, and the image is resampled by
backward mapping through the inverse homography.
"""

import logging
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence
import numpy as np
from scipy import ndimage
from skimage.transform import ProjectiveTransform, warp

from ..core.types import Point2D
from ..core.errors import SingularMatrix, SingularSystem, PerspectiveCorrectionFailed
from ..core import linalg
from .intensity import to_grayscale

logger = logging.getLogger(__name__)


@dataclass
class PerspectiveParams:
    """Parameters for frame detection and resampling."""

    threshold: float = 100.0  # minimum Harris response for a corner candidate
    window: int = 3  # half-width of the structure tensor window
    k: float = 0.04  # Harris sensitivity
    max_corners: int = 4
    interpolation_order: int = 0  # 0 = nearest neighbour, 1 = bilinear

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "threshold": self.threshold,
            "window": self.window,
            "k": self.k,
            "max_corners": self.max_corners,
            "interpolation_order": self.interpolation_order,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "PerspectiveParams":
        """Create from dictionary."""
        return cls(
            threshold=d.get("threshold", 100.0),
            window=d.get("window", 3),
            k=d.get("k", 0.04),
            max_corners=d.get("max_corners", 4),
            interpolation_order=d.get("interpolation_order", 0),
        )


class Corner(NamedTuple):
    """Corner candidate with its Harris response."""
    x: int
    y: int
    response: float


class FrameCorners(NamedTuple):
    """Four corners of the monitor frame in source-image pixels."""
    top_left: Point2D
    top_right: Point2D
    bottom_left: Point2D
    bottom_right: Point2D


def harris_response(gray: np.ndarray, window: int = 3, k: float = 0.04) -> np.ndarray:
    """
    Harris response ``det(M) - k * trace(M)^2`` for every pixel.

    Gradients are central differences on interior pixels (zero on the border)
    and ``M`` is summed over a ``(2*window + 1)`` square. Pixels closer than
    ``window`` to an edge have response 0.
    """
    gray = np.asarray(gray, dtype=float)
    height, width = gray.shape
    grad_x = np.zeros_like(gray)
    grad_y = np.zeros_like(gray)
    grad_x[1:-1, 1:-1] = gray[1:-1, 2:] - gray[1:-1, :-2]
    grad_y[1:-1, 1:-1] = gray[2:, 1:-1] - gray[:-2, 1:-1]

    size = 2 * window + 1
    area = float(size * size)
    ixx = ndimage.uniform_filter(grad_x * grad_x, size=size, mode="constant") * area
    iyy = ndimage.uniform_filter(grad_y * grad_y, size=size, mode="constant") * area
    ixy = ndimage.uniform_filter(grad_x * grad_y, size=size, mode="constant") * area

    response = ixx * iyy - ixy * ixy - k * (ixx + iyy) ** 2
    valid = np.zeros_like(response, dtype=bool)
    valid[window:height - window, window:width - window] = True
    return np.where(valid, response, 0.0)


def detect_corners(
    image: np.ndarray,
    threshold: float = 100.0,
    window: int = 3,
    k: float = 0.04,
    max_corners: int = 4,
) -> List[Corner]:
    """
    Detect the strongest Harris corners.

    Parameters
    ----------
    image : ndarray
        Grayscale or RGB(A) image
    threshold : float
        Minimum response for a candidate
    window : int
        Half-width of the summation window
    k : float
        Harris sensitivity
    max_corners : int
        Number of candidates to keep

    Returns
    -------
    corners : list of Corner
        Sorted by descending response; ties keep row-major scan order.
    """
    gray = np.floor(to_grayscale(image) + 0.5)
    response = harris_response(gray, window=window, k=k)

    ys, xs = np.nonzero(response > threshold)
    values = response[ys, xs]
    order = np.argsort(-values, kind="stable")[:max_corners]
    return [Corner(int(xs[i]), int(ys[i]), float(values[i])) for i in order]


def image_corners(width: int, height: int) -> FrameCorners:
    """Literal corner pixels of a ``width x height`` image."""
    return FrameCorners(
        top_left=Point2D(0.0, 0.0),
        top_right=Point2D(float(width - 1), 0.0),
        bottom_left=Point2D(0.0, float(height - 1)),
        bottom_right=Point2D(float(width - 1), float(height - 1)),
    )


def find_frame_corners(corners: Sequence, width: int, height: int) -> FrameCorners:
    """
    Assign corner candidates to the four quadrants of the image.

    Within a quadrant the most extreme candidate wins (top-left: min x+y,
    top-right: max x-y, bottom-left: max y-x, bottom-right: max x+y). Fewer
    than four candidates, or an empty quadrant, fall back to the literal image
    corners.
    """
    fallback = image_corners(width, height)
    if len(corners) < 4:
        logger.debug("Only %d corner candidates, using image corners", len(corners))
        return fallback

    cx = width / 2.0
    cy = height / 2.0
    top_left = top_right = bottom_left = bottom_right = None

    for corner in corners:
        x, y = float(corner.x), float(corner.y)
        if x < cx and y < cy:
            if top_left is None or x + y < top_left.x + top_left.y:
                top_left = Point2D(x, y)
        elif x >= cx and y < cy:
            if top_right is None or x - y > top_right.x - top_right.y:
                top_right = Point2D(x, y)
        elif x < cx and y >= cy:
            if bottom_left is None or y - x > bottom_left.y - bottom_left.x:
                bottom_left = Point2D(x, y)
        else:
            if bottom_right is None or x + y > bottom_right.x + bottom_right.y:
                bottom_right = Point2D(x, y)

    return FrameCorners(
        top_left=top_left or fallback.top_left,
        top_right=top_right or fallback.top_right,
        bottom_left=bottom_left or fallback.bottom_left,
        bottom_right=bottom_right or fallback.bottom_right,
    )


def compute_homography(src: Sequence[Point2D], dst: Sequence[Point2D]) -> np.ndarray:
    """
    Homography mapping four source points onto four destination points.

    Solves the 8-unknown system (``h22 = 1``) by least squares through the
    normal equations.

    Raises
    ------
    SingularSystem
        If the correspondences are degenerate (e.g. collinear).
    """
    if len(src) != 4 or len(dst) != 4:
        raise ValueError("Exactly four correspondences are required")

    rows = []
    rhs = []
    for (x, y), (u, v) in zip((p.to_tuple() for p in src), (p.to_tuple() for p in dst)):
        rows.append([x, y, 1.0, 0.0, 0.0, 0.0, -u * x, -u * y])
        rhs.append(u)
        rows.append([0.0, 0.0, 0.0, x, y, 1.0, -v * x, -v * y])
        rhs.append(v)

    h = linalg.solve_least_squares(np.array(rows), np.array(rhs))
    return np.append(h, 1.0).reshape(3, 3)


def apply_homography(homography: np.ndarray, x: float, y: float) -> Point2D:
    """Map a single point through a homography."""
    u, v, w = np.asarray(homography, dtype=float) @ np.array([x, y, 1.0])
    return Point2D(float(u / w), float(v / w))


def warp_perspective(
    image: np.ndarray,
    homography: np.ndarray,
    out_width: int,
    out_height: int,
    order: int = 0,
) -> np.ndarray:
    """
    Resample ``image`` into an ``out_height x out_width`` frame.

    Every output pixel is mapped back through the inverse homography. Samples
    falling outside the source stay zero.

    Raises
    ------
    SingularMatrix
        If the homography cannot be inverted.
    """
    inverse = linalg.invert3x3(homography)
    inverse_map = ProjectiveTransform(matrix=inverse)
    source = np.asarray(image)
    output_shape = (int(out_height), int(out_width))

    def _warp_channel(channel: np.ndarray) -> np.ndarray:
        return warp(
            channel.astype(float),
            inverse_map,
            output_shape=output_shape,
            order=order,
            mode="constant",
            cval=0.0,
            preserve_range=True,
        )

    if source.ndim == 2:
        warped = _warp_channel(source)
    else:
        warped = np.stack([_warp_channel(source[..., c]) for c in range(source.shape[2])], axis=-1)

    if np.issubdtype(source.dtype, np.integer):
        info = np.iinfo(source.dtype)
        return np.clip(np.floor(warped + 0.5), info.min, info.max).astype(source.dtype)
    return warped.astype(source.dtype, copy=False)


def correct_perspective(image: np.ndarray, params: Optional[PerspectiveParams] = None) -> np.ndarray:
    """
    Detect the monitor frame and warp it onto the full image rectangle.

    Detected frame corners map onto ``(0, 0), (W, 0), (0, H), (W, H)``. If the
    detector finds fewer than four corners the literal image corners are used,
    which yields a near-identity correction rather than an error. Those corners
    sit at ``W - 1`` and ``H - 1``, so the fallback enlarges the image slightly,
    by a factor of ``W / (W - 1)`` horizontally and ``H / (H - 1)`` vertically.

    Raises
    ------
    PerspectiveCorrectionFailed
        If the homography is singular. Callers may fall back to the original
        image.
    """
    if params is None:
        params = PerspectiveParams()

    height, width = np.asarray(image).shape[:2]
    corners = detect_corners(
        image,
        threshold=params.threshold,
        window=params.window,
        k=params.k,
        max_corners=params.max_corners,
    )
    frame = find_frame_corners(corners, width, height)
    logger.debug("Frame corners from %d candidates: %s", len(corners), frame)

    target = FrameCorners(
        top_left=Point2D(0.0, 0.0),
        top_right=Point2D(float(width), 0.0),
        bottom_left=Point2D(0.0, float(height)),
        bottom_right=Point2D(float(width), float(height)),
    )

    try:
        homography = compute_homography(list(frame), list(target))
        return warp_perspective(image, homography, width, height, order=params.interpolation_order)
    except (SingularSystem, SingularMatrix) as e:
        raise PerspectiveCorrectionFailed(f"Homography estimation failed: {e.message}") from e
