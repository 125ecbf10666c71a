"""
Drawing primitives for projected 3D boxes.

OpenCV helpers that write box wireframes, convex-hull masks and labels into
caller-owned buffers. Images are BGR (as returned by cv2.imread); masks are
single-channel float32.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

import cv2
import numpy as np

from ..utils.errors import InvalidImageError


# =============================================================================
# Render Configuration
# =============================================================================

@dataclass(frozen=True)
class RenderConfig:
    """
    Appearance of the box overlay.

    Attributes:
        box_color: Color of all 12 box edges (BGR).
        front_color: Color of the 4 front-face edges (BGR).
        thickness: Line thickness in pixels.
        mask_value: Value written into the mask for occupied pixels.
        draw_labels: Draw "<class> #<track>" next to each box.
        font_scale: Label font scale.
    """
    box_color: Tuple[int, int, int] = (0, 0, 255)       # Red
    front_color: Tuple[int, int, int] = (255, 0, 0)     # Blue
    thickness: int = 1
    mask_value: float = 1.0
    draw_labels: bool = False
    font_scale: float = 0.4

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "RenderConfig":
        """Build from the ``render`` section of the YAML config."""
        defaults = cls()
        return cls(
            box_color=tuple(config.get("box_color", defaults.box_color)),
            front_color=tuple(config.get("front_color", defaults.front_color)),
            thickness=int(config.get("thickness", defaults.thickness)),
            mask_value=float(config.get("mask_value", defaults.mask_value)),
            draw_labels=bool(config.get("draw_labels", defaults.draw_labels)),
            font_scale=float(config.get("font_scale", defaults.font_scale)),
        )


# =============================================================================
# Buffer Checks
# =============================================================================

def check_image_buffer(image: Optional[np.ndarray], name: str = "image") -> np.ndarray:
    """
    Ensure a buffer can be drawn into.

    Args:
        image: Buffer to check.
        name: Name used in the error message.

    Returns:
        The buffer, unchanged.

    Raises:
        InvalidImageError: If the buffer is None, empty or not 2D/3D.
    """
    if image is None:
        raise InvalidImageError(f"{name} buffer is None")
    if not isinstance(image, np.ndarray):
        raise InvalidImageError(f"{name} buffer must be a numpy array, got {type(image).__name__}")
    if image.ndim not in (2, 3) or image.size == 0:
        raise InvalidImageError(f"{name} buffer is empty or malformed: shape {image.shape}")
    return image


def check_mask_buffer(mask: Optional[np.ndarray]) -> np.ndarray:
    """Ensure a buffer is a non-empty single-channel mask."""
    check_image_buffer(mask, "mask")
    if mask.ndim == 3 and mask.shape[2] != 1:
        raise InvalidImageError(f"mask buffer must be single-channel, got shape {mask.shape}")
    return mask


def round_to_pixels(points_2d: np.ndarray) -> np.ndarray:
    """Round (N, 2) sub-pixel coordinates to the nearest integer pixel."""
    return np.floor(np.asarray(points_2d, dtype=np.float64) + 0.5).astype(np.int32)


# =============================================================================
# Drawing Functions
# =============================================================================

def draw_edges(
    image: np.ndarray,
    pixels: np.ndarray,
    edges: Sequence[Tuple[int, int]],
    color: Tuple[int, int, int],
    thickness: int = 1,
) -> np.ndarray:
    """
    Draw line segments between indexed points, in place.

    Args:
        image: Image to draw on (modified in place).
        pixels: (N, 2) integer pixel coordinates.
        edges: Pairs of indices into ``pixels``.
        color: Line color (BGR).
        thickness: Line thickness.

    Returns:
        The same image.
    """
    check_image_buffer(image)

    for start, end in edges:
        pt1 = (int(pixels[start, 0]), int(pixels[start, 1]))
        pt2 = (int(pixels[end, 0]), int(pixels[end, 1]))
        cv2.line(image, pt1, pt2, color, thickness)

    return image


def fill_convex_hull(
    mask: np.ndarray,
    pixels: np.ndarray,
    value: float = 1.0,
) -> np.ndarray:
    """
    Fill the convex hull of a point set into a mask, in place.

    Overlapping fills overwrite each other; with a single sentinel value the
    result is the union of all hulls.

    Args:
        mask: (H, W) single-channel buffer (modified in place).
        pixels: (N, 2) integer pixel coordinates.
        value: Fill value.

    Returns:
        The same mask.
    """
    check_mask_buffer(mask)

    points = np.ascontiguousarray(pixels, dtype=np.int32).reshape(-1, 1, 2)
    hull = cv2.convexHull(points)
    cv2.fillConvexPoly(mask, hull, value)

    return mask


def draw_text(
    image: np.ndarray,
    text: str,
    position: Tuple[int, int],
    color: Tuple[int, int, int] = (255, 255, 255),
    font_scale: float = 0.4,
    thickness: int = 1,
    background: bool = True,
    padding: int = 2,
) -> np.ndarray:
    """
    Draw text on image with optional background.

    Args:
        image: Image to draw on (modified in place).
        text: Text string to draw.
        position: (x, y) position (bottom-left of text).
        color: Text color (BGR).
        font_scale: Font scale factor.
        thickness: Text thickness.
        background: Whether to draw background box.
        padding: Background padding in pixels.

    Returns:
        Image with text drawn.
    """
    check_image_buffer(image)

    font = cv2.FONT_HERSHEY_SIMPLEX
    x, y = position

    (text_w, text_h), baseline = cv2.getTextSize(text, font, font_scale, thickness)

    # Keep text within image bounds
    h, w = image.shape[:2]
    y = max(text_h + padding, min(y, h - padding))
    x = max(padding, min(x, w - text_w - padding))

    if background:
        bg_color = tuple(int(c * 0.3) for c in color)
        bg_pt1 = (x - padding, y - text_h - padding)
        bg_pt2 = (x + text_w + padding, y + baseline + padding)
        cv2.rectangle(image, bg_pt1, bg_pt2, bg_color, -1)

    cv2.putText(image, text, (x, y), font, font_scale, color, thickness, cv2.LINE_AA)

    return image


def overlay_mask(
    image: np.ndarray,
    mask: np.ndarray,
    color: Tuple[int, int, int] = (0, 255, 0),
    alpha: float = 0.4,
) -> np.ndarray:
    """
    Blend a binary mask over an image.

    Args:
        image: (H, W, 3) BGR image.
        mask: (H, W) mask; non-zero pixels are blended.
        color: Mask color (BGR).
        alpha: Transparency (0-1).

    Returns:
        New image with the mask overlay.
    """
    check_image_buffer(image)
    check_mask_buffer(mask)

    result = image.copy()
    mask_region = np.squeeze(mask) > 0

    if not np.any(mask_region):
        return result

    colored = np.empty_like(image[mask_region])
    colored[:] = color

    result[mask_region] = cv2.addWeighted(
        image[mask_region], 1 - alpha,
        colored, alpha,
        0,
    )

    return result
