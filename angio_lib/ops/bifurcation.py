"""
Bifurcation point localisation from three 2D centerlines.

Three estimators propose candidates, each with a score in ``(0, 1]``:

- closest approach: the centerline point nearest to all three vessels
- intersection: centroid of pairwise intersections of the vessel axes
- centroid: most compact centroid of one endpoint per vessel

The highest score wins and becomes the reported confidence.
"""

import logging
import math
from dataclasses import dataclass
from itertools import combinations, product
from typing import List, NamedTuple, Optional, Tuple
import numpy as np

from ..core.types import (
    Point2D,
    PointLike,
    as_point,
    Centerline,
    CenterlinePoint,
    VesselSet,
    BifurcationMethod,
    BifurcationResult,
)
from ..core.errors import BifurcationNotFound

logger = logging.getLogger(__name__)

PARALLEL_TOLERANCE = 1e-10


@dataclass
class BifurcationParams:
    """Parameters for bifurcation localisation."""

    segment_length: float = 25.0  # pixels, length of each adjusted segment
    segment_step: float = 2.0  # pixels between adjusted segment samples

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "segment_length": self.segment_length,
            "segment_step": self.segment_step,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "BifurcationParams":
        """Create from dictionary."""
        return cls(
            segment_length=d.get("segment_length", 25.0),
            segment_step=d.get("segment_step", 2.0),
        )


class Candidate(NamedTuple):
    """Bifurcation proposal from one estimator."""
    point: Point2D
    method: BifurcationMethod
    score: float


def point_to_segment_distance(point: PointLike, seg_start: PointLike, seg_end: PointLike) -> float:
    """Distance from a point to the closed segment ``seg_start -> seg_end``."""
    p = as_point(point)
    a = as_point(seg_start)
    b = as_point(seg_end)
    cx = b.x - a.x
    cy = b.y - a.y
    length_sq = cx * cx + cy * cy
    if length_sq == 0:
        return p.distance_to(a)
    t = ((p.x - a.x) * cx + (p.y - a.y) * cy) / length_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(p.x - (a.x + t * cx), p.y - (a.y + t * cy))


def distance_to_centerline(point: PointLike, centerline: Centerline) -> float:
    """
    Minimum distance from a point to a centerline polyline.

    A single-point centerline is treated as that point.
    """
    if len(centerline) == 0:
        raise BifurcationNotFound("Centerline has no points")
    if len(centerline) == 1:
        return as_point(point).distance_to(centerline.start)

    p = as_point(point).to_array()
    arr = centerline.to_array()
    starts = arr[:-1]
    deltas = arr[1:] - starts
    length_sq = np.einsum("ij,ij->i", deltas, deltas)
    rel = p - starts
    with np.errstate(invalid="ignore", divide="ignore"):
        t = np.where(length_sq > 0, np.einsum("ij,ij->i", rel, deltas) / length_sq, 0.0)
    t = np.clip(t, 0.0, 1.0)
    closest = starts + t[:, None] * deltas
    return float(np.min(np.linalg.norm(p - closest, axis=1)))


def _distances(point: PointLike, vessels: VesselSet) -> Tuple[float, float]:
    dists = [distance_to_centerline(point, c) for c in vessels]
    return sum(dists), max(dists)


def closest_approach_candidate(vessels: VesselSet) -> Optional[Candidate]:
    """
    Scan every centerline point for the one closest to all three vessels.

    Score is ``1/(1 + max) * 1/(1 + total)`` of the point's distances to the
    three centerlines. A point replaces the current best only when it lowers
    the total distance and raises the score.
    """
    best_point = None
    best_score = 0.0
    min_total = math.inf

    for centerline in vessels:
        for cp in centerline:
            total, worst = _distances(cp, vessels)
            score = (1.0 / (1.0 + worst)) * (1.0 / (1.0 + total))
            if total < min_total and score > best_score:
                min_total = total
                best_score = score
                best_point = cp.to_point()

    if best_point is None:
        return None
    return Candidate(best_point, BifurcationMethod.CLOSEST_APPROACH, best_score)


def _axis(centerline: Centerline) -> Optional[np.ndarray]:
    if not centerline.is_usable():
        return None
    delta = centerline.end.to_array() - centerline.start.to_array()
    length = float(np.linalg.norm(delta))
    if length == 0:
        return None
    return delta / length


def _line_intersection(p1: Point2D, d1: np.ndarray, p2: Point2D, d2: np.ndarray) -> Optional[Point2D]:
    det = d1[0] * d2[1] - d1[1] * d2[0]
    if abs(det) < PARALLEL_TOLERANCE:
        return None
    t = ((p2.x - p1.x) * d2[1] - (p2.y - p1.y) * d2[0]) / det
    return Point2D(float(p1.x + t * d1[0]), float(p1.y + t * d1[1]))


def intersection_candidate(vessels: VesselSet) -> Optional[Candidate]:
    """
    Centroid of the pairwise intersections of the three vessel axes.

    Each axis runs from the first to the last centerline point and is anchored
    at the first point. Parallel pairs are skipped. Score is
    ``1/(1 + total + max)`` of the centroid's distances to the centerlines.
    """
    axes = [_axis(c) for c in vessels]
    if any(a is None for a in axes):
        return None

    hits = []
    for i, j in combinations(range(3), 2):
        hit = _line_intersection(vessels[i].start, axes[i], vessels[j].start, axes[j])
        if hit is not None:
            hits.append(hit.to_array())
    if not hits:
        return None

    point = Point2D.from_array(np.mean(hits, axis=0))
    total, worst = _distances(point, vessels)
    return Candidate(point, BifurcationMethod.INTERSECTION, 1.0 / (1.0 + total + worst))


def centroid_candidate(vessels: VesselSet) -> Optional[Candidate]:
    """Most compact centroid over the 2x2x2 choices of one endpoint per vessel."""
    endpoints = [(c.start, c.end) for c in vessels]
    best = None
    best_score = 0.0

    for ends in product(*endpoints):
        center = Point2D(
            sum(p.x for p in ends) / 3.0,
            sum(p.y for p in ends) / 3.0,
        )
        dists = [center.distance_to(p) for p in ends]
        score = 1.0 / (1.0 + max(dists) + sum(dists) / 3.0)
        if score > best_score:
            best_score = score
            best = center

    if best is None:
        return None
    return Candidate(best, BifurcationMethod.CENTROID, best_score)


def _segment_from(point: Point2D, centerline: Centerline, length: float, step: float) -> Centerline:
    origin = CenterlinePoint(point.x, point.y)
    if not centerline.is_usable():
        return Centerline((origin,))

    farthest = centerline.start
    farthest_dist = farthest.distance_to(point)
    for cp in centerline:
        d = cp.to_point().distance_to(point)
        if d > farthest_dist:
            farthest, farthest_dist = cp.to_point(), d
    if farthest_dist == 0:
        return Centerline((origin,))

    ux = (farthest.x - point.x) / farthest_dist
    uy = (farthest.y - point.y) / farthest_dist
    n_steps = int(math.floor(length / step))
    samples = [origin] + [
        CenterlinePoint(point.x + ux * step * i, point.y + uy * step * i)
        for i in range(1, n_steps + 1)
    ]
    return Centerline(tuple(samples))


def adjusted_segments(
    point: PointLike,
    vessels: VesselSet,
    segment_length: float = 25.0,
    step: float = 2.0,
) -> VesselSet:
    """
    Short straight segments starting at the bifurcation point.

    Each segment heads toward the centerline point farthest from the
    bifurcation. A centerline with fewer than two points, or whose points all
    coincide with the bifurcation, yields the bifurcation point alone.
    """
    p = as_point(point)
    return VesselSet(*(_segment_from(p, c, segment_length, step) for c in vessels))


def locate_bifurcation(
    main: Centerline,
    branch1: Centerline,
    branch2: Centerline,
    params: Optional[BifurcationParams] = None,
) -> BifurcationResult:
    """
    Locate the bifurcation of three vessel centerlines.

    Parameters
    ----------
    main, branch1, branch2 : Centerline
        Centerlines of the main vessel and its two branches
    params : BifurcationParams, optional
        Adjusted segment geometry

    Returns
    -------
    BifurcationResult
        Winning point, its estimator, the estimator's score as confidence and
        the adjusted segments.

    Raises
    ------
    BifurcationNotFound
        If a centerline is empty or no estimator yields a candidate.
    """
    if params is None:
        params = BifurcationParams()

    vessels = VesselSet(main, branch1, branch2)
    empty = [name for name, c in vessels.items() if len(c) == 0]
    if empty:
        raise BifurcationNotFound(f"Empty centerline(s): {', '.join(empty)}")

    candidates: List[Candidate] = [
        c for c in (
            closest_approach_candidate(vessels),
            intersection_candidate(vessels),
            centroid_candidate(vessels),
        )
        if c is not None
    ]
    if not candidates:
        raise BifurcationNotFound("No estimator produced a bifurcation candidate")

    best = candidates[0]
    for candidate in candidates[1:]:
        if candidate.score > best.score:
            best = candidate

    logger.debug(
        "Bifurcation at (%.1f, %.1f) via %s, confidence %.3f",
        best.point.x, best.point.y, best.method.value, best.score,
    )

    return BifurcationResult(
        point=best.point,
        method=best.method,
        confidence=float(best.score),
        adjusted_segments=adjusted_segments(
            best.point, vessels, params.segment_length, params.segment_step
        ),
    )
