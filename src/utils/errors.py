"""Exceptions raised by the box overlay pipeline."""


class ParseError(ValueError):
    """Raised when a frame list or an object record cannot be parsed."""


class InvalidImageError(ValueError):
    """
    Raised when an image or mask buffer is missing, empty or has the wrong shape.

    The visualizer treats this as a per-frame failure: the frame is skipped
    and the run continues.
    """
