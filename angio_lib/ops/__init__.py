"""Operations: tracking, bifurcation localisation, reconstruction and optimisation."""

from .tracking import (
    TrackingParams,
    find_local_center,
    trace_between,
    smooth_centerline,
    extract_centerline,
    extract_vessel_set,
)
from .bifurcation import (
    BifurcationParams,
    point_to_segment_distance,
    distance_to_centerline,
    closest_approach_candidate,
    intersection_candidate,
    centroid_candidate,
    adjusted_segments,
    locate_bifurcation,
)
from .reconstruction import (
    ProjectionView,
    reconstruct_3d_directions,
    view_from_vessel_set,
    reconstruct_vessel_set_directions,
    centerline_direction_3d,
    triangulate_centerline_endpoints,
    bifurcation_plane_normal,
    plane_normal,
)
from .optimizer import (
    OptimizerParams,
    validate_vessel_directions,
    single_vessel_score,
    viewing_score,
    grid_axes,
    score_grid,
    grid_search,
    refine_angles,
    optimal_angles,
    plane_normal_angles,
)
from .volume import (
    VolumeData,
    SegmentationParams,
    SegmentedVessel,
    VolumeBifurcation,
    region_grow,
    extract_centerline_3d,
    vessel_length,
    segment_vessels,
    detect_volume_bifurcations,
    project_centerline,
)

__all__ = [
    "TrackingParams",
    "find_local_center",
    "trace_between",
    "smooth_centerline",
    "extract_centerline",
    "extract_vessel_set",
    "BifurcationParams",
    "point_to_segment_distance",
    "distance_to_centerline",
    "closest_approach_candidate",
    "intersection_candidate",
    "centroid_candidate",
    "adjusted_segments",
    "locate_bifurcation",
    "ProjectionView",
    "reconstruct_3d_directions",
    "view_from_vessel_set",
    "reconstruct_vessel_set_directions",
    "centerline_direction_3d",
    "triangulate_centerline_endpoints",
    "bifurcation_plane_normal",
    "plane_normal",
    "OptimizerParams",
    "validate_vessel_directions",
    "single_vessel_score",
    "viewing_score",
    "grid_axes",
    "score_grid",
    "grid_search",
    "refine_angles",
    "optimal_angles",
    "plane_normal_angles",
    "VolumeData",
    "SegmentationParams",
    "SegmentedVessel",
    "VolumeBifurcation",
    "region_grow",
    "extract_centerline_3d",
    "vessel_length",
    "segment_vessels",
    "detect_volume_bifurcations",
    "project_centerline",
]
