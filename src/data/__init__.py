"""Frame list loading for the box overlay."""

from .frame_loader import (
    FrameLoader,
    FrameSpec,
    ObjectRecord,
    load_frames,
    parse_frames,
)

__all__ = ["FrameLoader", "FrameSpec", "ObjectRecord", "load_frames", "parse_frames"]
