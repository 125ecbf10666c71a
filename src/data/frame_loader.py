"""
Tracked-object frame list loader.

File Format:
============

The frame list is a JSON array with one entry per camera frame:

    [
        {
            "img_file": "camera/000123.jpg",
            "objs": [
                [classId, trackId, x, y, z, l, w, h, yaw],
                ...
            ]
        },
        ...
    ]

- img_file: image path relative to the image root ("image_file" accepted)
- objs: tracked objects ("objects" accepted)
- classId: 0 car, 1 truck/bus, 2 pedestrian, 3 bicycle/motorcycle
- trackId: tracker identity
- x, y, z: box center in the vehicle frame (meters)
- l, w, h: box length, width, height (meters)
- yaw: heading about the vertical axis (radians)

Coordinate Systems:
===================
- Vehicle: x=forward, y=left, z=up
- Image: u=right, v=down (origin at top-left)
"""

import json
import numbers
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, List, Sequence, Tuple, Union

import cv2
import numpy as np

from ..utils.errors import InvalidImageError, ParseError
from ..utils.logger import LoggerMixin

RECORD_LENGTH = 9

IMAGE_KEYS = ("img_file", "image_file")
OBJECT_KEYS = ("objs", "objects")


def _as_number(value: Any, name: str) -> float:
    # bool is a numbers.Number subclass but never a valid field
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ParseError(f"Field '{name}' must be numeric, got {value!r}")
    return float(value)


def _as_int(value: Any, name: str) -> int:
    number = _as_number(value, name)
    if not number.is_integer():
        raise ParseError(f"Field '{name}' must be an integer, got {value!r}")
    return int(number)


@dataclass(frozen=True)
class ObjectRecord:
    """
    One tracked object as read from the frame list.

    Attributes:
        class_id: Object category.
        track_id: Tracker identity.
        center: (x, y, z) in the vehicle frame, meters.
        extents: (length, width, height), meters.
        yaw: Heading in radians.
    """
    class_id: int
    track_id: int
    center: Tuple[float, float, float]
    extents: Tuple[float, float, float]
    yaw: float

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "ObjectRecord":
        """
        Parse ``[classId, trackId, x, y, z, l, w, h, yaw]``.

        Extra trailing fields are ignored.

        Raises:
            ParseError: If the row is not a list, is too short, or holds
                non-numeric values.
        """
        if not isinstance(row, (list, tuple)):
            raise ParseError(f"Object record must be a list, got {type(row).__name__}")
        if len(row) < RECORD_LENGTH:
            raise ParseError(
                f"Object record needs {RECORD_LENGTH} fields, got {len(row)}: {row!r}"
            )

        return cls(
            class_id=_as_int(row[0], "classId"),
            track_id=_as_int(row[1], "trackId"),
            center=(
                _as_number(row[2], "x"),
                _as_number(row[3], "y"),
                _as_number(row[4], "z"),
            ),
            extents=(
                _as_number(row[5], "length"),
                _as_number(row[6], "width"),
                _as_number(row[7], "height"),
            ),
            yaw=_as_number(row[8], "yaw"),
        )

    def to_row(self) -> List[float]:
        """Inverse of from_row()."""
        return [self.class_id, self.track_id, *self.center, *self.extents, self.yaw]


@dataclass(frozen=True)
class FrameSpec:
    """One frame of the input list: image path and its objects."""
    image_file: str
    objects: Tuple[ObjectRecord, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, entry: Any) -> "FrameSpec":
        """
        Parse one frame entry.

        Raises:
            ParseError: If keys are missing or objects are malformed.
        """
        if not isinstance(entry, dict):
            raise ParseError(f"Frame entry must be an object, got {type(entry).__name__}")

        image_file = next((entry[k] for k in IMAGE_KEYS if k in entry), None)
        if not isinstance(image_file, str):
            raise ParseError(f"Frame entry needs a string '{IMAGE_KEYS[0]}'")

        rows = next((entry[k] for k in OBJECT_KEYS if k in entry), None)
        if not isinstance(rows, list):
            raise ParseError(f"Frame entry needs an '{OBJECT_KEYS[0]}' list")

        objects = []
        for obj_idx, row in enumerate(rows):
            try:
                objects.append(ObjectRecord.from_row(row))
            except ParseError as e:
                raise ParseError(f"Object {obj_idx}: {e}") from e

        return cls(image_file=image_file, objects=tuple(objects))


def parse_frames(data: Any) -> List[FrameSpec]:
    """
    Parse decoded JSON into frames.

    Raises:
        ParseError: Naming the offending frame index.
    """
    if not isinstance(data, list):
        raise ParseError(f"Frame list must be a JSON array, got {type(data).__name__}")

    frames = []
    for frame_idx, entry in enumerate(data):
        try:
            frames.append(FrameSpec.from_dict(entry))
        except ParseError as e:
            raise ParseError(f"Frame {frame_idx}: {e}") from e

    return frames


def load_frames(path: Union[str, Path]) -> List[FrameSpec]:
    """
    Load and parse a JSON frame list.

    Args:
        path: Path to the JSON file.

    Returns:
        Frames in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ParseError: If the file is not valid JSON or not a valid frame list.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Frame list not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid JSON in {path}: {e}") from e

    return parse_frames(data)


class FrameLoader(LoggerMixin):
    """Load frames and their camera images from a JSON frame list."""

    def __init__(
        self,
        frames_file: Union[str, Path],
        image_root: Union[str, Path] = ".",
    ):
        """
        Initialize the frame loader.

        Args:
            frames_file: Path to the JSON frame list.
            image_root: Directory that image paths are relative to.
        """
        self.frames_file = Path(frames_file)
        self.image_root = Path(image_root)
        self.frames = load_frames(self.frames_file)

        self.logger.info(f"Loaded {len(self.frames)} frames from {self.frames_file}")

    def __len__(self) -> int:
        """Return the number of frames."""
        return len(self.frames)

    def __getitem__(self, index: int) -> FrameSpec:
        """Get frame by index."""
        return self.frames[index]

    def __iter__(self) -> Iterator[FrameSpec]:
        return iter(self.frames)

    def image_path(self, frame: FrameSpec) -> Path:
        """Resolve the image path of a frame against the image root."""
        return self.image_root / frame.image_file

    def load_image(self, frame: FrameSpec) -> np.ndarray:
        """
        Load the BGR image of a frame.

        Args:
            frame: Frame to load.

        Returns:
            Image as numpy array (H, W, 3).

        Raises:
            InvalidImageError: If the file is missing, cannot be decoded or
                decodes to an empty image.
        """
        image_path = self.image_path(frame)
        if not image_path.exists():
            raise InvalidImageError(f"Image not found: {image_path}")

        image = cv2.imread(str(image_path))
        if image is None or image.size == 0:
            raise InvalidImageError(f"Failed to load image: {image_path}")

        return image
