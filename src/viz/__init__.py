"""Visualization utilities for the box overlay."""

from .box_overlay import (
    RenderConfig,
    check_image_buffer,
    check_mask_buffer,
    draw_edges,
    draw_text,
    fill_convex_hull,
    overlay_mask,
    round_to_pixels,
)

__all__ = [
    "RenderConfig",
    "check_image_buffer",
    "check_mask_buffer",
    "draw_edges",
    "draw_text",
    "fill_convex_hull",
    "overlay_mask",
    "round_to_pixels",
]
