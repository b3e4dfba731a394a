"""
Tests for core types and structured results.
"""

import pytest
import numpy as np

from angio_lib.core.types import (
    Point2D,
    Point3D,
    Direction3D,
    ProjectionAngles,
    CenterlinePoint,
    Centerline,
    VesselSet,
    OptimalAngles,
    as_point,
)
from angio_lib.core.errors import ZeroMagnitude, InvalidAngles, InsufficientSeedPoints
from angio_lib.core.result import OperationResult, OperationStatus
from angio_lib.ops.optimizer import optimal_angles


def test_as_point_accepts_common_inputs():
    assert as_point((1, 2)) == Point2D(1.0, 2.0)
    assert as_point(np.array([3.0, 4.0])) == Point2D(3.0, 4.0)
    assert as_point(CenterlinePoint(5.0, 6.0, 99.0)) == Point2D(5.0, 6.0)


def test_point3d_round_trip():
    p = Point3D(1.0, -2.0, 3.5)
    assert Point3D.from_dict(p.to_dict()) == p
    assert p.distance_to(Point3D(1.0, -2.0, 0.5)) == pytest.approx(3.0)


def test_direction_normalized_on_creation():
    d = Direction3D(3.0, 0.0, 4.0)
    assert d.to_tuple() == pytest.approx((0.6, 0.0, 0.8))
    assert Direction3D.from_dict(d.to_dict()).to_tuple() == pytest.approx(d.to_tuple())
    with pytest.raises(ZeroMagnitude):
        Direction3D(0.0, 0.0, 0.0)


def test_direction_products():
    x = Direction3D(1, 0, 0)
    y = Direction3D(0, 1, 0)
    assert x.dot(y) == pytest.approx(0.0)
    assert x.cross(y).to_tuple() == pytest.approx((0.0, 0.0, 1.0))
    assert x.angle_to(y) == pytest.approx(np.pi / 2)


def test_optimizer_accepts_directions():
    s = np.sqrt(0.5)
    directions = [Direction3D(0, 0, 1), Direction3D(s, 0, s), Direction3D(-s, 0, s)]
    result = optimal_angles(directions)
    assert (result.rao_lao, result.cranial_caudal) == (0.0, 0.0)


@pytest.mark.parametrize("rao,cranial", [(91, 0), (-90.5, 0), (0, 46), (0, -45.1), (np.nan, 0)])
def test_projection_angles_out_of_range(rao, cranial):
    with pytest.raises(InvalidAngles):
        ProjectionAngles(rao, cranial)


def test_projection_angles_limits_inclusive():
    angles = ProjectionAngles(-90, 45)
    assert ProjectionAngles.from_dict(angles.to_dict()) == angles
    assert OptimalAngles(-90.0, 45.0, 1.0).to_angles() == angles


def test_centerline_helpers():
    centerline = Centerline((
        CenterlinePoint(0.0, 0.0, 10.0),
        CenterlinePoint(3.0, 4.0, 20.0),
        CenterlinePoint(3.0, 10.0, 30.0),
    ))
    assert len(centerline) == 3
    assert centerline.is_usable()
    assert centerline.length() == pytest.approx(11.0)
    assert np.allclose(centerline.intensities(), [10.0, 20.0, 30.0])
    assert centerline.end == Point2D(3.0, 10.0)
    assert Centerline.from_dict(centerline.to_dict()) == centerline

    empty = Centerline()
    assert empty.to_array().shape == (0, 2)
    assert empty.length() == 0.0
    assert not empty.is_usable()


def test_vessel_set_round_trip():
    line = Centerline.from_points([(0, 0), (1, 1)])
    vessels = VesselSet(line, Centerline.from_points([(2, 2)]), line)
    assert [name for name, _ in vessels.items()] == ["main", "branch1", "branch2"]
    assert VesselSet.from_dict(vessels.to_dict()) == vessels


def test_result_from_exception():
    result = OperationResult.from_exception(InsufficientSeedPoints("need 2"), warnings=["w"])
    assert result.status == OperationStatus.FAILURE
    assert result.is_failure() and not result.is_success()
    assert result.error_codes == ["INSUFFICIENT_SEED_POINTS"]
    assert result.warnings == ["w"]
    assert OperationResult.from_dict(result.to_dict()) == result


def test_partial_success_counts_as_success():
    result = OperationResult.partial_success("ok", warnings=["fallback"])
    assert result.is_success()
    result.add_error("late", code=None)
    assert result.errors == ["late"]
    assert result.error_codes == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
