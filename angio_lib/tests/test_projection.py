"""
Tests for C-arm projection geometry.
"""

import pytest
import numpy as np

from angio_lib.core.types import Point2D, Point3D
from angio_lib.core.errors import DegenerateSegment, ZeroMagnitude
from angio_lib.geometry.projection import (
    angles_to_rotation,
    rao_lao_rotation,
    cranial_caudal_rotation,
    image_to_normalized,
    normalized_to_image,
    image_direction_to_3d,
    normal_to_angles,
    viewing_direction,
    projection_matrix,
    project_point,
    triangulate_point,
    angle_between_vectors_2d,
    angle_from_horizontal,
    round_angle,
)


@pytest.mark.parametrize("rao,cranial", [(0, 0), (30, 20), (-45, -30), (90, 45), (-90, -45), (12.5, 7.3)])
def test_rotation_is_orthonormal(rao, cranial):
    r = angles_to_rotation(rao, cranial)
    assert np.allclose(r @ r.T, np.eye(3), atol=1e-9)
    assert np.linalg.det(r) == pytest.approx(1.0, abs=1e-9)


def test_rotation_composition_order():
    expected = cranial_caudal_rotation(20) @ rao_lao_rotation(30)
    assert np.allclose(angles_to_rotation(30, 20), expected)
    assert not np.allclose(angles_to_rotation(30, 20), rao_lao_rotation(30) @ cranial_caudal_rotation(20))


def test_rotation_at_ap_is_identity():
    assert np.allclose(angles_to_rotation(0, 0), np.eye(3))


@pytest.mark.parametrize("rao", [-80, -30, 0, 25, 60, 89])
@pytest.mark.parametrize("cranial", [-40, -10, 0, 15, 44])
def test_normal_to_angles_round_trip(rao, cranial):
    got_rao, got_cranial = normal_to_angles(viewing_direction(rao, cranial))
    assert got_rao == pytest.approx(rao, abs=0.5)
    assert got_cranial == pytest.approx(cranial, abs=0.5)


def test_normal_to_angles_folds_opposite_normal():
    assert normal_to_angles([0.0, 1.0, 0.0]) == (0.0, 0.0)
    assert normal_to_angles([0.0, -1.0, 0.0]) == (0.0, 0.0)


def test_normal_to_angles_clamps_cranial():
    assert normal_to_angles([0.0, 0.0, 1.0]) == (0.0, 45.0)


def test_normal_to_angles_zero_normal():
    with pytest.raises(ZeroMagnitude):
        normal_to_angles([0.0, 0.0, 0.0])


def test_viewing_direction():
    assert np.allclose(viewing_direction(0, 0), [0.0, 1.0, 0.0])
    assert np.allclose(viewing_direction(90, 0), [-1.0, 0.0, 0.0])
    assert viewing_direction(0, 45)[2] == pytest.approx(np.sqrt(0.5))


def test_normalized_coordinates_flip_y():
    assert image_to_normalized((0, 0), 100, 50) == Point2D(-1.0, 1.0)
    assert image_to_normalized((50, 25), 100, 50) == Point2D(0.0, 0.0)
    back = normalized_to_image(image_to_normalized((17, 33), 100, 50), 100, 50)
    assert back.x == pytest.approx(17)
    assert back.y == pytest.approx(33)


def test_image_direction_to_3d_at_ap():
    r = np.eye(3)
    assert np.allclose(image_direction_to_3d((0, 0), (100, 0), 100, 100, r), [1.0, 0.0, 0.0])
    # image Y points down, patient Y of the detector plane points up
    assert np.allclose(image_direction_to_3d((0, 0), (0, 100), 100, 100, r), [0.0, -1.0, 0.0])


def test_image_direction_to_3d_uses_transpose():
    r = angles_to_rotation(30, 0)
    d = image_direction_to_3d((0, 50), (100, 50), 100, 100, r)
    assert np.allclose(d, r.T @ np.array([1.0, 0.0, 0.0]))


def test_image_direction_to_3d_coincident_points():
    with pytest.raises(DegenerateSegment):
        image_direction_to_3d((10, 10), (10, 10), 100, 100, np.eye(3))


def test_triangulation_round_trip():
    target = Point3D(10.0, -20.0, 30.0)
    cam1 = projection_matrix(0, 0)
    cam2 = projection_matrix(40, 10)
    p1 = project_point(target, cam1)
    p2 = project_point(target.to_array(), cam2)

    recovered = triangulate_point(p1, p2, cam1, cam2)
    assert recovered.distance_to(target) < 1e-6


def test_projection_matrix_shape_and_isocenter():
    cam = projection_matrix(25, -10)
    assert cam.shape == (3, 4)
    center = project_point(Point3D(0.0, 0.0, 0.0), cam)
    assert center.x == pytest.approx(0.0)
    assert center.y == pytest.approx(0.0)


def test_angle_helpers():
    assert angle_between_vectors_2d((1, 0), (0, 1)) == pytest.approx(90.0)
    assert angle_between_vectors_2d((1, 0), (-1, 0)) == pytest.approx(180.0)
    assert angle_between_vectors_2d((0, 0), (1, 0)) == 0.0
    assert angle_from_horizontal(1, 1) == 45.0
    assert angle_from_horizontal(-1, 0) == 180.0


def test_round_angle():
    assert round_angle(0.25) == 0.3
    assert round_angle(-0.25) == -0.3
    assert round_angle(12.34) == 12.3
    value = round_angle(-0.04)
    assert value == 0.0
    assert str(value) == "0.0"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
