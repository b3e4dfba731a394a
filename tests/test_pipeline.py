"""
End-to-end tests for the two-view workflow on a synthetic bifurcation.
"""

import json

import pytest
import numpy as np

from angio_lib import ImageCapture, ProjectionAngles, analyze_two_views, OperationStatus
from angio_lib.api import workflow
from angio_lib.core.errors import PerspectiveCorrectionFailed
from angio_lib.params import AnalysisParams, get_preset


@pytest.fixture
def no_perspective():
    return AnalysisParams(correct_perspective=False)


def test_two_views_recommend_angles(two_captures, no_perspective):
    result = analyze_two_views(*two_captures, params=no_perspective)

    assert result.status == OperationStatus.SUCCESS, result.errors
    assert result.warnings == []
    optimal = result.metadata["optimal"]
    assert -90.0 <= optimal["rao_lao"] <= 90.0
    # all three vessels lie in the detector plane of both views, so the
    # steepest cranial/caudal tilt shows them longest
    assert abs(optimal["cranial_caudal"]) == pytest.approx(45.0)
    assert optimal["score"] > 0


def test_bifurcation_found_at_junction(two_captures, no_perspective):
    result = analyze_two_views(*two_captures, params=no_perspective)
    for bifurcation in result.metadata["bifurcations"]:
        point = bifurcation["point"]
        assert np.hypot(point["x"] - 100, point["y"] - 100) < 8
        assert bifurcation["confidence"] > 0


def test_directions_are_unit_vectors(two_captures, no_perspective):
    result = analyze_two_views(*two_captures, params=no_perspective)
    directions = result.metadata["directions"]
    assert set(directions) == {"main", "branch1", "branch2"}
    for d in directions.values():
        assert np.linalg.norm(d) == pytest.approx(1.0)
    # main vessel runs up the image
    assert directions["main"][1] > 0.9


def test_metadata_reports_current_views_and_timing(two_captures, no_perspective):
    result = analyze_two_views(*two_captures, params=no_perspective)
    reports = result.metadata["current_views"]
    assert [r["angles"]["rao_lao"] for r in reports] == [30.0, -30.0]
    assert all(r["score"] <= result.metadata["optimal"]["score"] + 1e-9 for r in reports)

    timing = result.metadata["timing"]
    for stage in ("tracking_1", "bifurcation_1", "tracking_2", "bifurcation_2", "optimization"):
        assert stage in timing
    assert "perspective_1" not in timing
    assert result.metadata["plane_normal_angles"] is not None


def test_result_is_json_safe(two_captures, no_perspective, temp_dir):
    result = analyze_two_views(*two_captures, params=no_perspective)
    path = temp_dir / "result.json"
    path.write_text(json.dumps(result.to_dict()))
    restored = json.loads(path.read_text())
    assert restored["status"] == "success"
    assert restored["metadata"]["optimal"] == result.metadata["optimal"]


def test_rgb_capture(bifurcation_image, bifurcation_seeds, no_perspective):
    rgb = np.stack([bifurcation_image] * 3, axis=-1)
    capture1 = ImageCapture(rgb, ProjectionAngles(20.0, 10.0), bifurcation_seeds)
    capture2 = ImageCapture(rgb, ProjectionAngles(-40.0, -10.0), bifurcation_seeds)
    assert capture1.width == 200 and capture1.height == 200
    assert analyze_two_views(capture1, capture2, params=no_perspective).is_success()


def test_fast_preview_preset(two_captures):
    result = analyze_two_views(*two_captures, params=get_preset("fast_preview"))
    assert result.is_success()


def test_same_angles_warns(bifurcation_image, bifurcation_seeds, no_perspective):
    capture = ImageCapture(bifurcation_image, ProjectionAngles(30.0, 0.0), bifurcation_seeds)
    result = analyze_two_views(capture, capture, params=no_perspective)
    assert result.status == OperationStatus.PARTIAL_SUCCESS
    assert any("same projection angles" in w for w in result.warnings)


def test_perspective_failure_falls_back(two_captures, monkeypatch):
    def failing(image, params=None):
        raise PerspectiveCorrectionFailed("Homography estimation failed: SINGULAR_SYSTEM")

    monkeypatch.setattr(workflow, "correct_perspective", failing)
    result = analyze_two_views(*two_captures, params=AnalysisParams(correct_perspective=True))

    assert result.status == OperationStatus.PARTIAL_SUCCESS
    assert len(result.warnings) == 2
    assert all("original image used" in w for w in result.warnings)
    assert "perspective_1" in result.metadata["timing"]


def test_missing_seeds_fail_with_code(bifurcation_image, bifurcation_seeds, no_perspective):
    seeds = dict(bifurcation_seeds, branch2=[(100, 100)])
    capture1 = ImageCapture(bifurcation_image, ProjectionAngles(30.0, 0.0), seeds)
    capture2 = ImageCapture(bifurcation_image, ProjectionAngles(-30.0, 0.0), seeds)

    result = analyze_two_views(capture1, capture2, params=no_perspective)
    assert result.is_failure()
    assert result.error_codes == ["INSUFFICIENT_SEED_POINTS"]
    assert "optimal" not in result.metadata
    assert "timing" in result.metadata


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
