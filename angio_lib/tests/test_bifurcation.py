"""
Tests for bifurcation localisation.
"""

import pytest
import numpy as np

from angio_lib.core.types import Point2D, Centerline, VesselSet, BifurcationMethod
from angio_lib.core.errors import BifurcationNotFound
from angio_lib.ops.bifurcation import (
    BifurcationParams,
    point_to_segment_distance,
    distance_to_centerline,
    closest_approach_candidate,
    intersection_candidate,
    centroid_candidate,
    adjusted_segments,
    locate_bifurcation,
)


def _line(x0, y0, x1, y1, n):
    return Centerline.from_points(zip(np.linspace(x0, x1, n), np.linspace(y0, y1, n)))


@pytest.fixture
def y_junction():
    """Main vessel coming down to (50, 50), branches leaving down-right and down-left."""
    return VesselSet(
        _line(50, 0, 50, 50, 51),
        _line(50, 50, 90, 90, 41),
        _line(50, 50, 10, 90, 41),
    )


def test_point_to_segment_distance():
    assert point_to_segment_distance((5, 5), (0, 0), (10, 0)) == pytest.approx(5.0)
    assert point_to_segment_distance((15, 0), (0, 0), (10, 0)) == pytest.approx(5.0)
    assert point_to_segment_distance((3, 4), (0, 0), (0, 0)) == pytest.approx(5.0)


def test_distance_to_centerline():
    line = _line(0, 0, 10, 0, 11)
    assert distance_to_centerline((5, 3), line) == pytest.approx(3.0)
    assert distance_to_centerline((3, 4), Centerline.from_points([(0, 0)])) == pytest.approx(5.0)
    with pytest.raises(BifurcationNotFound):
        distance_to_centerline((0, 0), Centerline())


def test_y_junction_located(y_junction):
    result = locate_bifurcation(*y_junction)
    assert result.point.distance_to(Point2D(50, 50)) < 3.0
    assert result.confidence > 0
    assert result.method == BifurcationMethod.CLOSEST_APPROACH
    assert result.confidence == pytest.approx(1.0)


def test_intersection_of_axes(y_junction):
    candidate = intersection_candidate(y_junction)
    assert candidate.method == BifurcationMethod.INTERSECTION
    assert candidate.point.x == pytest.approx(50.0)
    assert candidate.point.y == pytest.approx(50.0)


def test_parallel_axes_give_no_intersection():
    vessels = VesselSet(_line(0, 0, 10, 0, 5), _line(0, 5, 10, 5, 5), _line(0, 9, 10, 9, 5))
    assert intersection_candidate(vessels) is None
    assert closest_approach_candidate(vessels) is not None


def test_centroid_prefers_compact_endpoints(y_junction):
    candidate = centroid_candidate(y_junction)
    assert candidate.point == Point2D(50.0, 50.0)
    assert candidate.score == pytest.approx(1.0)


def test_adjusted_segments_point_away_from_bifurcation(y_junction):
    segments = adjusted_segments(Point2D(50, 50), y_junction)
    assert all(len(s) == 13 for s in segments)
    assert segments.main.start == Point2D(50.0, 50.0)
    assert segments.main.end.x == pytest.approx(50.0)
    assert segments.main.end.y == pytest.approx(26.0)
    assert segments.branch1.end.x > 50 and segments.branch1.end.y > 50
    assert segments.branch2.end.x < 50 and segments.branch2.end.y > 50


def test_adjusted_segment_length_from_params(y_junction):
    result = locate_bifurcation(*y_junction, params=BifurcationParams(segment_length=10.0, segment_step=5.0))
    assert all(len(s) == 3 for s in result.adjusted_segments)


def test_single_point_centerlines():
    vessels = [Centerline.from_points([p]) for p in ((0, 0), (2, 0), (1, 2))]
    result = locate_bifurcation(*vessels)
    assert result.method == BifurcationMethod.CENTROID
    assert result.point.x == pytest.approx(1.0)
    assert result.point.y == pytest.approx(2.0 / 3.0)
    assert all(len(s) == 1 for s in result.adjusted_segments)


def test_empty_centerline_rejected(y_junction):
    with pytest.raises(BifurcationNotFound):
        locate_bifurcation(y_junction.main, Centerline(), y_junction.branch2)


def test_result_serializes(y_junction):
    d = locate_bifurcation(*y_junction).to_dict()
    assert d["method"] == "closest_approach"
    assert set(d["adjusted_segments"]) == {"main", "branch1", "branch2"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
