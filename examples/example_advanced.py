"""
Advanced example using individual functions from the angio view package.

This example demonstrates:
1. Segmenting coronary vessels in a CT volume
2. Projecting their centerlines into two synthetic angiographic views
3. Reconstructing directions and optimizing the viewing angles step by step
4. Custom visualization
"""

import numpy as np

from angio_lib.core.types import ProjectionAngles
from angio_lib.ops.volume import (
    VolumeData,
    SegmentationParams,
    segment_vessels,
    detect_volume_bifurcations,
    project_centerline,
)
from angio_lib.ops.reconstruction import ProjectionView, reconstruct_3d_directions
from angio_lib.ops.optimizer import OptimizerParams, optimal_angles, plane_normal_angles
from angio_lib.analysis import compare_views, score_map
from angio_lib.visualization import plot_score_map, plot_directions_3d

print("Loading CT volume...")
volume = VolumeData(np.load("coronary_cta.npy"), spacing=(0.4, 0.4, 0.6))

print("Segmenting vessels...")
seeds = [(210, 180, 95), (230, 205, 110), (195, 210, 112)]
vessels = segment_vessels(volume, seeds, SegmentationParams(lower=250.0, upper=700.0))
for vessel in vessels:
    print(f"{vessel.id}: length {vessel.length:.1f} mm, volume {vessel.volume:.1f} mm^3")

for bifurcation in detect_volume_bifurcations(vessels):
    print(f"Bifurcation {bifurcation.vessel1}/{bifurcation.vessel2} "
          f"at {bifurcation.point.to_tuple()} (confidence {bifurcation.confidence:.2f})")

print("Projecting centerlines into two views...")
view = ProjectionAngles(30.0, 20.0)
other = ProjectionAngles(-30.0, 20.0)
center = np.mean(np.vstack([v.centerline for v in vessels]), axis=0)
views = []
for angles in (view, other):
    segments = {}
    for vessel in vessels[:3]:
        projected = project_centerline(vessel.centerline, angles, 512, 512, center=center)
        segments[vessel.id] = (projected.start, projected.end)
    views.append(ProjectionView(angles=angles, width=512, height=512, segments=segments))

print("Reconstructing 3D directions...")
directions = list(reconstruct_3d_directions(*views).values())

print("Optimizing viewing angles...")
params = OptimizerParams(refinement="gradient", workers=4)
optimal = optimal_angles(directions, params)
print(f"Optimal: {optimal.rao_lao:.1f} RAO/LAO, {optimal.cranial_caudal:.1f} CRA/CAU")
print(f"Plane normal: {plane_normal_angles(directions)}")

comparison = compare_views(directions, view, optimal.to_angles(), params)
print(f"Score gain over current view: {comparison['score_gain']:.3f}")

print("Generating visualizations...")
plot_score_map(score_map(directions, params), optimal, title="Viewing score")
plot_directions_3d(directions, title="Vessel directions")

print("\nProcessing complete!")
