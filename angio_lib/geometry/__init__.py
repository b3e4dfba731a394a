"""C-arm projection geometry."""

from .projection import (
    angles_to_rotation,
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

__all__ = [
    "angles_to_rotation",
    "image_to_normalized",
    "normalized_to_image",
    "image_direction_to_3d",
    "normal_to_angles",
    "viewing_direction",
    "projection_matrix",
    "project_point",
    "triangulate_point",
    "angle_between_vectors_2d",
    "angle_from_horizontal",
    "round_angle",
]
