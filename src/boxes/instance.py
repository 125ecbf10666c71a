"""
Oriented 3D box instances projected into the camera image.

Coordinate System (vehicle frame):
- X: forward
- Y: left
- Z: up

A BoxInstance is built once per object per frame from its pose and size and
the shared CalibrationModel. After construction it is read-only: corners,
projected corners and distance never change.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence

import numpy as np

from ..calibration.projection import CalibrationModel
from ..utils.errors import InvalidImageError
from ..viz.box_overlay import (
    RenderConfig,
    check_image_buffer,
    draw_edges,
    draw_text,
    fill_convex_hull,
    round_to_pixels,
)
from .topology import BOX_EDGES, FRONT_EDGES, UNIT_CUBE_CORNERS

if TYPE_CHECKING:
    from ..data.frame_loader import ObjectRecord


# Corners must be farther forward than this (meters) to count as visible.
NEAR_PLANE_THRESHOLD = 2.0

# Class ids in ascending order as produced by the tracker
CLASS_NAMES: Dict[int, str] = {
    0: "car",
    1: "truck",       # also bus
    2: "pedestrian",
    3: "bicycle",     # also motorcycle
}


# =============================================================================
# Standalone Geometry Functions
# =============================================================================

def compute_box_corners(
    center: np.ndarray,
    extents: np.ndarray,
    yaw: float,
) -> np.ndarray:
    """
    Compute the 8 corners of an oriented box.

    The unit cube is scaled by half the extents, rotated by ``yaw`` about
    the vertical axis and translated to ``center``:

        corner = Rz(yaw) @ (unit * extents / 2) + center

    Args:
        center: (x, y, z) box center in the vehicle frame.
        extents: (length, width, height) in meters.
        yaw: Heading in radians, counter-clockwise about +Z.

    Returns:
        (8, 3) corners in canonical order (see topology module).
    """
    center = np.asarray(center, dtype=np.float64).reshape(3)
    extents = np.asarray(extents, dtype=np.float64).reshape(3)

    local = UNIT_CUBE_CORNERS * (0.5 * extents)

    c, s = np.cos(yaw), np.sin(yaw)
    R_z = np.array([
        [c, -s, 0],
        [s, c, 0],
        [0, 0, 1],
    ])

    return local @ R_z.T + center


def compute_ground_distance(corners_3d: np.ndarray) -> float:
    """
    Distance to the nearest corner measured in the horizontal (x, y) plane.

    Height is ignored, so this is a planar radius, not a 3D range.

    Args:
        corners_3d: (N, 3) corners in the vehicle frame.

    Returns:
        Minimum planar norm over the corners.
    """
    return float(np.linalg.norm(corners_3d[:, :2], axis=1).min())


# =============================================================================
# BoxInstance
# =============================================================================

@dataclass(frozen=True, eq=False)
class BoxInstance:
    """
    One tracked object with its box corners in 3D and in the image.

    Attributes:
        class_id: Object category.
        track_id: Tracker identity.
        center: (3,) box center, vehicle frame.
        extents: (3,) length, width, height in meters.
        yaw: Heading in radians.
        corners_3d: (8, 3) box corners, vehicle frame.
        corners_2d: (8, 2) projected corners, pixels.
        distance: Minimum horizontal-plane distance over the corners.

    Use BoxInstance.build() or BoxInstance.from_record() rather than the
    field constructor.
    """
    class_id: int
    track_id: int
    center: np.ndarray
    extents: np.ndarray
    yaw: float
    corners_3d: np.ndarray
    corners_2d: np.ndarray
    distance: float

    @classmethod
    def build(
        cls,
        class_id: int,
        track_id: int,
        center: Sequence[float],
        extents: Sequence[float],
        yaw: float,
        calibration: CalibrationModel,
    ) -> "BoxInstance":
        """
        Construct a box and project it with ``calibration``.

        Args:
            class_id: Object category.
            track_id: Tracker identity.
            center: (x, y, z) in the vehicle frame.
            extents: (length, width, height) in meters.
            yaw: Heading in radians.
            calibration: Shared camera calibration.

        Returns:
            BoxInstance with corners, projections and distance filled in.
        """
        center = np.array(center, dtype=np.float64).reshape(3)
        extents = np.array(extents, dtype=np.float64).reshape(3)

        corners_3d = compute_box_corners(center, extents, yaw)
        corners_2d = calibration.project_points(corners_3d)
        distance = compute_ground_distance(corners_3d)

        for array in (center, extents, corners_3d, corners_2d):
            array.flags.writeable = False

        return cls(
            class_id=int(class_id),
            track_id=int(track_id),
            center=center,
            extents=extents,
            yaw=float(yaw),
            corners_3d=corners_3d,
            corners_2d=corners_2d,
            distance=distance,
        )

    @classmethod
    def from_record(
        cls,
        record: "ObjectRecord",
        calibration: CalibrationModel,
    ) -> "BoxInstance":
        """Construct from a parsed input record."""
        return cls.build(
            record.class_id,
            record.track_id,
            record.center,
            record.extents,
            record.yaw,
            calibration,
        )

    @property
    def class_name(self) -> str:
        """Human readable class name."""
        return CLASS_NAMES.get(self.class_id, f"class_{self.class_id}")

    @property
    def pixel_corners(self) -> np.ndarray:
        """(8, 2) projected corners rounded to the nearest pixel."""
        return round_to_pixels(self.corners_2d)

    def is_visible(
        self,
        image_width: int,
        image_height: int,
        near_plane: float = NEAR_PLANE_THRESHOLD,
    ) -> bool:
        """
        Check that the whole box lies inside the image, in front of the camera.

        Every corner must satisfy 0 < u < width, 0 < v < height and
        x > near_plane. One failing corner hides the whole box; nothing is
        clipped. Non-finite projections fail the comparisons.

        Args:
            image_width: Image width in pixels.
            image_height: Image height in pixels.
            near_plane: Minimum forward coordinate in meters.

        Returns:
            True if all corners pass.

        Raises:
            InvalidImageError: If the image size is not positive.
        """
        if image_width <= 0 or image_height <= 0:
            raise InvalidImageError(
                f"Image size must be positive, got {image_width}x{image_height}"
            )

        u = self.corners_2d[:, 0]
        v = self.corners_2d[:, 1]
        x = self.corners_3d[:, 0]

        valid = (
            (u > 0) & (u < image_width) &
            (v > 0) & (v < image_height) &
            (x > near_plane)
        )

        return bool(valid.all())

    def render_to(
        self,
        image: np.ndarray,
        config: Optional[RenderConfig] = None,
    ) -> None:
        """
        Draw the box wireframe into ``image`` in place.

        All 12 edges are drawn in ``config.box_color``, then the 4 front
        edges are drawn again in ``config.front_color``. Only call this for
        visible boxes; corners behind the camera do not round to pixels.

        Raises:
            InvalidImageError: If the buffer is None or empty.
        """
        config = config or RenderConfig()
        check_image_buffer(image)

        pixels = self.pixel_corners
        draw_edges(image, pixels, BOX_EDGES, config.box_color, config.thickness)
        draw_edges(image, pixels, FRONT_EDGES, config.front_color, config.thickness)

        if config.draw_labels:
            top_left = pixels.min(axis=0)
            draw_text(
                image,
                f"{self.class_name} #{self.track_id}",
                (int(top_left[0]), int(top_left[1]) - 3),
                color=config.box_color,
                font_scale=config.font_scale,
            )

    def accumulate_mask(self, mask: np.ndarray, value: float = 1.0) -> None:
        """
        Fill the convex hull of the projected corners into ``mask`` in place.

        Raises:
            InvalidImageError: If the mask is None, empty or multi-channel.
        """
        fill_convex_hull(mask, self.pixel_corners, value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary; corner lists follow the canonical order."""
        return {
            "class_id": self.class_id,
            "class_name": self.class_name,
            "track_id": self.track_id,
            "center": self.center.tolist(),
            "extents": self.extents.tolist(),
            "yaw": self.yaw,
            "distance": self.distance,
            "corners_3d": self.corners_3d.tolist(),
            "corners_2d": self.corners_2d.tolist(),
        }
