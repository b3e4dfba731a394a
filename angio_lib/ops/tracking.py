"""
Seed-guided vessel centerline tracking.

The tracker walks from one user seed to the next. At every step it pulls the
cursor toward the intensity-weighted center of the vessel under it, so the
recorded path follows the contrast-filled lumen rather than the straight line
between seeds.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
import numpy as np

from ..core.types import Point2D, PointLike, as_point, CenterlinePoint, Centerline, VesselSet, VESSEL_NAMES
from ..core.errors import InsufficientSeedPoints
from ..imaging.intensity import sample_intensity

logger = logging.getLogger(__name__)


@dataclass
class TrackingParams:
    """Parameters for centerline tracking."""

    step_size: float = 1.0  # pixels between samples
    search_radius: int = 5  # pixels, local center window
    blend_factor: float = 0.7  # weight of the seed-to-seed line vs. local center
    edge_margin: int = 2  # cursor is kept this many pixels from every edge
    smoothing_window: int = 3
    segment_cap: float = 50.0  # maximum traced length per seed pair, pixels

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "step_size": self.step_size,
            "search_radius": self.search_radius,
            "blend_factor": self.blend_factor,
            "edge_margin": self.edge_margin,
            "smoothing_window": self.smoothing_window,
            "segment_cap": self.segment_cap,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "TrackingParams":
        """Create from dictionary."""
        return cls(
            step_size=d.get("step_size", 1.0),
            search_radius=d.get("search_radius", 5),
            blend_factor=d.get("blend_factor", 0.7),
            edge_margin=d.get("edge_margin", 2),
            smoothing_window=d.get("smoothing_window", 3),
            segment_cap=d.get("segment_cap", 50.0),
        )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def find_local_center(field: np.ndarray, x: float, y: float, radius: int = 5) -> Point2D:
    """
    Intensity-weighted centroid in a disc around ``(x, y)``.

    Each in-bounds pixel within ``radius`` of the rounded position contributes
    with weight ``I * exp(-d^2 / r^2)``. If every weight is zero the input
    position is returned unchanged.
    """
    height, width = field.shape
    cx = _round_half_up(x)
    cy = _round_half_up(y)

    offsets = np.arange(-radius, radius + 1)
    dx, dy = np.meshgrid(offsets, offsets)
    dist_sq = dx * dx + dy * dy
    sx = cx + dx
    sy = cy + dy
    mask = (dist_sq <= radius * radius) & (sx >= 0) & (sx < width) & (sy >= 0) & (sy < height)
    if not np.any(mask):
        return Point2D(float(x), float(y))

    sx = sx[mask]
    sy = sy[mask]
    weights = field[sy, sx] * np.exp(-dist_sq[mask] / float(radius * radius))
    total = float(weights.sum())
    if total == 0:
        return Point2D(float(x), float(y))

    return Point2D(float((sx * weights).sum() / total), float((sy * weights).sum() / total))


def trace_between(
    field: np.ndarray,
    start: PointLike,
    end: PointLike,
    params: Optional[TrackingParams] = None,
) -> List[CenterlinePoint]:
    """
    Trace the centerline between two seeds.

    The number of steps is ``floor(min(segment_cap, distance) / step_size)``
    and ``steps + 1`` points are recorded. A segment shorter than one step
    records its start only. A non-positive ``step_size`` raises ``ValueError``.

    Returns
    -------
    points : list of CenterlinePoint
        Unsmoothed local centers with their interpolated intensity. Identical
        seeds give the seed alone.
    """
    if params is None:
        params = TrackingParams()
    if params.step_size <= 0:
        raise ValueError(f"step_size must be positive, got {params.step_size}")

    height, width = field.shape
    start = as_point(start)
    end = as_point(end)
    dx = end.x - start.x
    dy = end.y - start.y
    distance = math.hypot(dx, dy)

    if distance == 0:
        return [CenterlinePoint(start.x, start.y, sample_intensity(field, start.x, start.y))]

    steps = int(math.floor(min(distance, params.segment_cap) / params.step_size))
    margin = params.edge_margin
    blend = params.blend_factor

    points = []
    cur_x, cur_y = start.x, start.y
    for step in range(steps + 1):
        center = find_local_center(field, cur_x, cur_y, params.search_radius)
        points.append(CenterlinePoint(center.x, center.y, sample_intensity(field, center.x, center.y)))

        progress = step / steps if steps > 0 else 1.0
        target_x = start.x + dx * progress
        target_y = start.y + dy * progress
        cur_x = blend * target_x + (1 - blend) * center.x
        cur_y = blend * target_y + (1 - blend) * center.y

        cur_x = max(margin, min(width - 1 - margin, cur_x))
        cur_y = max(margin, min(height - 1 - margin, cur_y))

    return points


def smooth_centerline(points: Sequence[CenterlinePoint], window: int = 3) -> List[CenterlinePoint]:
    """
    Symmetric moving average of point positions.

    Edge windows shrink to the available neighbours. Intensities are kept from
    the unsmoothed points. Inputs shorter than ``window`` are returned as is.
    """
    points = list(points)
    if len(points) < window:
        return points

    coords = np.array([[p.x, p.y] for p in points], dtype=float)
    half = window // 2
    n = len(points)
    smoothed = []
    for i, p in enumerate(points):
        lo = max(0, i - half)
        hi = min(n - 1, i + half)
        mx, my = coords[lo:hi + 1].mean(axis=0)
        smoothed.append(CenterlinePoint(float(mx), float(my), p.intensity))
    return smoothed


def extract_centerline(
    field: np.ndarray,
    seed_points: Sequence[PointLike],
    segment_cap: Optional[float] = None,
    params: Optional[TrackingParams] = None,
) -> Centerline:
    """
    Extract a smoothed centerline through an ordered list of seeds.

    Parameters
    ----------
    field : (H, W) ndarray
        Vessel intensity map (see ``create_intensity_map``)
    seed_points : sequence of Point2D or (x, y)
        At least two seeds along the vessel
    segment_cap : float, optional
        Maximum traced length per seed pair; overrides ``params.segment_cap``
    params : TrackingParams, optional
        Tracking parameters

    Returns
    -------
    Centerline

    Raises
    ------
    InsufficientSeedPoints
        If fewer than two seeds are given.
    """
    if params is None:
        params = TrackingParams()
    if segment_cap is not None:
        params = TrackingParams.from_dict({**params.to_dict(), "segment_cap": segment_cap})

    seeds = [as_point(p) for p in seed_points]
    if len(seeds) < 2:
        raise InsufficientSeedPoints(f"At least 2 seed points required, got {len(seeds)}")

    field = np.asarray(field, dtype=float)
    traced = []
    for start, end in zip(seeds[:-1], seeds[1:]):
        traced.extend(trace_between(field, start, end, params))

    smoothed = smooth_centerline(traced, params.smoothing_window)
    logger.debug("Traced %d centerline points from %d seeds", len(smoothed), len(seeds))
    return Centerline(tuple(smoothed))


def extract_vessel_set(
    field: np.ndarray,
    seeds_by_vessel: Dict[str, Sequence[PointLike]],
    params: Optional[TrackingParams] = None,
) -> VesselSet:
    """
    Extract the main vessel and both branches in one call.

    ``seeds_by_vessel`` must have the keys ``main``, ``branch1`` and
    ``branch2``.
    """
    missing = [name for name in VESSEL_NAMES if name not in seeds_by_vessel]
    if missing:
        raise InsufficientSeedPoints(f"No seed points for: {', '.join(missing)}")

    return VesselSet(*(
        extract_centerline(field, seeds_by_vessel[name], params=params) for name in VESSEL_NAMES
    ))
