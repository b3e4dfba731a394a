"""
Tests for the CT volume workflow.
"""

import pytest
import numpy as np

from angio_lib.core.types import ProjectionAngles
from angio_lib.geometry.projection import angles_to_rotation
from angio_lib.ops.reconstruction import centerline_direction_3d
from angio_lib.ops.volume import (
    VolumeData,
    SegmentationParams,
    SegmentedVessel,
    region_grow,
    extract_centerline_3d,
    vessel_length,
    segment_vessels,
    detect_volume_bifurcations,
    project_centerline,
)


def _tubes():
    """Two parallel 3x3 tubes along X, 400 HU in air."""
    data = np.zeros((20, 20, 40))
    data[4:7, 4:7, 5:35] = 400.0
    data[13:16, 13:16, 5:35] = 400.0
    return data


def _vessel(name, centerline):
    centerline = np.asarray(centerline, dtype=float)
    return SegmentedVessel(
        id=name,
        seed=(0, 0, 0),
        centerline=centerline,
        length=vessel_length(centerline),
        volume=0.0,
        voxel_count=0,
    )


def test_volume_data_validation():
    with pytest.raises(ValueError):
        VolumeData(np.zeros((4, 4)))
    with pytest.raises(ValueError):
        VolumeData(np.zeros((4, 4, 4)), spacing=(1.0, 0.0, 1.0))
    volume = VolumeData(np.zeros((4, 5, 6)), spacing=(0.5, 0.5, 2))
    assert volume.voxel_volume == pytest.approx(0.5)
    assert volume.contains((5, 4, 3))
    assert not volume.contains((6, 0, 0))


def test_region_grow_fills_tube():
    volume = VolumeData(_tubes())
    mask = region_grow(volume, (10, 5, 5))
    assert mask.sum() == 3 * 3 * 30
    assert mask[5, 5, 20]
    assert not mask[14, 14, 20]


def test_region_grow_seed_outside_window():
    data = _tubes()
    data[5, 5, 10] = 1200.0
    volume = VolumeData(data)
    assert not region_grow(volume, (10, 5, 5)).any()
    assert not region_grow(volume, (0, 0, 0)).any()
    assert not region_grow(volume, (100, 0, 0)).any()


def test_region_grow_radius_bridges_gaps():
    data = _tubes()
    data[4:7, 4:7, 15] = 0.0
    volume = VolumeData(data)
    assert region_grow(volume, (10, 5, 5), radius=1).sum() == 3 * 3 * 10
    assert region_grow(volume, (10, 5, 5), radius=2).sum() == 3 * 3 * 29


def test_centerline_follows_tube_axis():
    mask = _tubes() > 0
    mask[13:16] = False
    points = extract_centerline_3d(mask)
    assert points.shape[1] == 3
    assert vessel_length(points) > 15
    assert np.all(np.abs(points[:, 1] - 5) <= 1.5)
    assert np.all(np.abs(points[:, 2] - 5) <= 1.5)


def test_centerline_uses_spacing():
    mask = _tubes() > 0
    mask[13:16] = False
    points = extract_centerline_3d(mask, spacing=(0.5, 1.0, 1.0))
    assert points[:, 0].max() <= 0.5 * 34 + 1e-9


def test_centerline_of_empty_mask():
    assert extract_centerline_3d(np.zeros((5, 5, 5), dtype=bool)).shape == (0, 3)


def test_vessel_length():
    assert vessel_length(np.array([[0, 0, 0], [3, 4, 0], [3, 4, 12]])) == pytest.approx(17.0)
    assert vessel_length(np.zeros((1, 3))) == 0.0


def test_segment_vessels():
    volume = VolumeData(_tubes(), spacing=(0.5, 0.5, 0.5))
    seeds = [(10, 5, 5), (20, 5, 5), (10, 14, 14), (0, 0, 0)]
    vessels = segment_vessels(volume, seeds, keep_masks=True)

    assert [v.id for v in vessels] == ["vessel_0", "vessel_2"]
    assert all(v.voxel_count == 270 for v in vessels)
    assert vessels[0].volume == pytest.approx(270 * 0.125)
    assert vessels[0].mask is not None
    assert not (vessels[0].mask & vessels[1].mask).any()
    assert "mask" not in vessels[0].to_dict()


def test_small_regions_dropped():
    data = np.zeros((10, 10, 10))
    data[5, 5, 3:8] = 300.0
    vessels = segment_vessels(VolumeData(data), [(5, 5, 5)], SegmentationParams(min_vessel_voxels=10))
    assert vessels == []


def test_min_vessel_voxels_is_exclusive():
    data = np.zeros((10, 10, 10))
    data[5, 5, 3:8] = 300.0
    assert segment_vessels(VolumeData(data), [(5, 5, 5)], SegmentationParams(min_vessel_voxels=5)) == []
    kept = segment_vessels(VolumeData(data), [(5, 5, 5)], SegmentationParams(min_vessel_voxels=4))
    assert [v.voxel_count for v in kept] == [5]


def test_volume_bifurcation_midpoint_and_confidence():
    a = _vessel("a", [[x, 0, 0] for x in range(21)])
    b = _vessel("b", [[10, y, 0] for y in range(3, 21)])
    far = _vessel("far", [[x, 100, 100] for x in range(21)])

    found = detect_volume_bifurcations([a, b, far], proximity=5.0)
    assert len(found) == 1
    hit = found[0]
    assert (hit.vessel1, hit.vessel2) == ("a", "b")
    assert hit.point.to_tuple() == pytest.approx((8.5, 1.5, 0.0))
    assert hit.confidence == pytest.approx(0.85)


def test_projected_centerline_reconstructs_direction():
    points = np.array([[x, 0.0, 0.0] for x in np.linspace(-20, 20, 9)])
    angles = ProjectionAngles(0.0, 0.0)
    centerline = project_centerline(points, angles, 100, 100)
    assert centerline.start.x == pytest.approx(40.0)
    assert centerline.end.x == pytest.approx(60.0)
    assert centerline.start.y == pytest.approx(50.0)
    assert np.allclose(centerline_direction_3d(centerline, angles, 100, 100), [1.0, 0.0, 0.0])


def test_projection_round_trip_at_oblique_view():
    direction = np.array([0.3, -0.5, 0.8])
    direction /= np.linalg.norm(direction)
    angles = ProjectionAngles(25.0, -15.0)
    centerline = project_centerline(np.outer([0.0, 30.0], direction), angles, 512, 512)
    recovered = centerline_direction_3d(centerline, angles, 512, 512)
    # depth along the detector normal is lost in a single view
    normal = angles_to_rotation(25.0, -15.0).T @ np.array([0.0, 0.0, 1.0])
    in_plane = direction - np.dot(direction, normal) * normal
    assert np.allclose(recovered, in_plane / np.linalg.norm(in_plane))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
