"""Shared utilities."""

from .geometry import (
    UP,
    EPSILON,
    normalize,
    project_onto_plane,
    perpendicular_frame,
    sample_cone_direction,
    rotation_arc,
    in_cone,
)

__all__ = [
    "UP",
    "EPSILON",
    "normalize",
    "project_onto_plane",
    "perpendicular_frame",
    "sample_cone_direction",
    "rotation_arc",
    "in_cone",
]
