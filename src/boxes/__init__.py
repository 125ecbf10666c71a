"""Oriented 3D boxes: corner topology and per-object instances."""

from .topology import (
    BOX_EDGES,
    FRONT_CORNERS,
    FRONT_EDGES,
    NUM_CORNERS,
    UNIT_CUBE_CORNERS,
)
from .instance import (
    BoxInstance,
    CLASS_NAMES,
    NEAR_PLANE_THRESHOLD,
    compute_box_corners,
    compute_ground_distance,
)

__all__ = [
    "BoxInstance",
    "CLASS_NAMES",
    "NEAR_PLANE_THRESHOLD",
    "compute_box_corners",
    "compute_ground_distance",
    "BOX_EDGES",
    "FRONT_CORNERS",
    "FRONT_EDGES",
    "NUM_CORNERS",
    "UNIT_CUBE_CORNERS",
]
