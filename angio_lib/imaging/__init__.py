"""Image-level processing: grayscale fields and perspective correction."""

from .intensity import to_grayscale, create_intensity_map, sample_intensity
from .perspective import (
    PerspectiveParams,
    Corner,
    FrameCorners,
    harris_response,
    detect_corners,
    find_frame_corners,
    compute_homography,
    apply_homography,
    warp_perspective,
    correct_perspective,
)

__all__ = [
    "to_grayscale",
    "create_intensity_map",
    "sample_intensity",
    "PerspectiveParams",
    "Corner",
    "FrameCorners",
    "harris_response",
    "detect_corners",
    "find_frame_corners",
    "compute_homography",
    "apply_homography",
    "warp_perspective",
    "correct_perspective",
]
