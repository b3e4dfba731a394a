"""
Tests for foreshortening reports and debug plots.
"""

import pytest
import numpy as np

from angio_lib.core.types import ProjectionAngles, OptimalAngles, VesselSet, Centerline
from angio_lib.ops.optimizer import OptimizerParams
from angio_lib.analysis import foreshortening_report, compare_views, score_map

S = np.sqrt(0.5)
Y_PLANE = [[0.0, 0.0, 1.0], [S, 0.0, S], [-S, 0.0, S]]


def test_report_at_best_view():
    report = foreshortening_report(Y_PLANE, ProjectionAngles(0, 0))
    assert report["angles"] == {"rao_lao": 0, "cranial_caudal": 0}
    for name in ("main", "branch1", "branch2"):
        vessel = report["vessels"][name]
        assert vessel["visible_fraction"] == pytest.approx(1.0)
        assert vessel["foreshortening_pct"] == pytest.approx(0.0)
        assert vessel["angle_to_beam_deg"] == pytest.approx(90.0)
    assert report["score"] == pytest.approx(3.5)
    assert report["relative_score"] == pytest.approx(1.0)


def test_report_vessel_along_beam():
    directions = [[0.0, 1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]]
    report = foreshortening_report(directions, ProjectionAngles(0, 0))
    assert report["vessels"]["main"]["foreshortening_pct"] == pytest.approx(100.0)
    assert report["vessels"]["main"]["angle_to_beam_deg"] == pytest.approx(0.0)
    assert report["relative_score"] == pytest.approx(2.0 / 3.5)


def test_compare_views():
    comparison = compare_views(Y_PLANE, ProjectionAngles(40, 30), ProjectionAngles(0, 0))
    assert comparison["score_gain"] > 0
    assert all(v >= 0 for v in comparison["foreshortening_reduction_pct"].values())


def test_score_map_shape():
    result = score_map(Y_PLANE, OptimizerParams(grid_step=5.0))
    assert result["scores"].shape == (len(result["rao_lao"]), len(result["cranial_caudal"]))
    i = int(np.argmin(np.abs(result["rao_lao"])))
    j = int(np.argmin(np.abs(result["cranial_caudal"])))
    assert result["scores"][i, j] == pytest.approx(result["scores"].max())


def test_plots_render_offscreen():
    matplotlib = pytest.importorskip("matplotlib")
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt
    from angio_lib.visualization import plot_centerlines, plot_score_map, plot_directions_3d

    line = Centerline.from_points([(0, 0), (10, 10)])
    vessels = VesselSet(line, line, line)
    plot_centerlines(np.zeros((20, 20)), vessels, show=False, title="centerlines")
    plot_score_map(score_map(Y_PLANE, OptimizerParams(grid_step=5.0)), OptimalAngles(0.0, 0.0, 3.5), show=False)
    ax = plot_directions_3d(Y_PLANE, normal=[0, 1, 0], show=False)
    assert ax is not None
    plt.close("all")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
