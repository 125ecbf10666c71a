"""
Frame processing pipeline for the box overlay.

Classes:
    FrameProcessor: Gate, build, order, visibility-filter and render one frame.
    FrameResult: Annotated image, occupancy mask and the drawn boxes.
    RecordGate: Default class and spatial pre-filter for raw records.

Example:
    >>> from src.pipeline import FrameProcessor
    >>> from src.calibration import CalibrationModel
    >>>
    >>> processor = FrameProcessor(CalibrationModel.default())
    >>> result = processor.process(frame.objects, image)
    >>> print(result.num_visible)
"""

from .filters import RecordFilter, RecordGate, keep_all
from .frame_processor import FrameProcessor, FrameResult

__all__ = [
    "FrameProcessor",
    "FrameResult",
    "RecordFilter",
    "RecordGate",
    "keep_all",
]
