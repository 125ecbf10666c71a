"""
Per-frame box overlay pipeline.

Processing order:
1. Gate raw records (class and spatial pre-filter)
2. Build one BoxInstance per surviving record
3. Sort by distance, nearest first (stable)
4. Drop boxes that are not fully inside the image
5. Draw wireframes onto a copy of the image, then accumulate the mask

Every stage returns a new list; nothing is mutated in place except the
frame's own output buffers inside render().
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..boxes.instance import NEAR_PLANE_THRESHOLD, BoxInstance
from ..calibration.projection import CalibrationModel
from ..data.frame_loader import ObjectRecord
from ..utils.logger import LoggerMixin
from ..viz.box_overlay import RenderConfig, check_image_buffer
from .filters import RecordFilter, RecordGate


@dataclass
class FrameResult:
    """
    Output of one processed frame.

    Attributes:
        image: Annotated copy of the input image.
        mask: (H, W) float32 occupancy mask.
        instances: Visible boxes, nearest first.
        num_records: Records received.
        num_kept: Records that passed the gate.
    """
    image: np.ndarray
    mask: np.ndarray
    instances: List[BoxInstance] = field(default_factory=list)
    num_records: int = 0
    num_kept: int = 0

    @property
    def num_visible(self) -> int:
        """Number of boxes drawn."""
        return len(self.instances)

    def to_dict(self) -> Dict[str, Any]:
        """Summary without the image buffers."""
        return {
            "num_records": self.num_records,
            "num_kept": self.num_kept,
            "num_visible": self.num_visible,
            "track_ids": [inst.track_id for inst in self.instances],
            "distances": [round(inst.distance, 3) for inst in self.instances],
        }


class FrameProcessor(LoggerMixin):
    """
    Turn raw object records and a camera image into overlay buffers.

    Usage:
        processor = FrameProcessor(CalibrationModel.default())
        result = processor.process(frame.objects, image)
    """

    def __init__(
        self,
        calibration: CalibrationModel,
        record_filter: Optional[RecordFilter] = None,
        render_config: Optional[RenderConfig] = None,
        near_plane: float = NEAR_PLANE_THRESHOLD,
    ):
        """
        Initialize the processor.

        Args:
            calibration: Shared camera calibration.
            record_filter: Gate applied to raw records (default RecordGate()).
            render_config: Overlay appearance.
            near_plane: Minimum forward corner coordinate for visibility.
        """
        self.calibration = calibration
        self.record_filter = record_filter if record_filter is not None else RecordGate()
        self.render_config = render_config or RenderConfig()
        self.near_plane = near_plane

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        calibration: Optional[CalibrationModel] = None,
    ) -> "FrameProcessor":
        """
        Build from a full configuration dictionary.

        Args:
            config: Configuration with ``filter``, ``visibility`` and
                ``render`` sections.
            calibration: Calibration to use (default constants if None).
        """
        return cls(
            calibration=calibration or CalibrationModel.default(),
            record_filter=RecordGate.from_config(config.get("filter", {})),
            render_config=RenderConfig.from_config(config.get("render", {})),
            near_plane=float(
                config.get("visibility", {}).get("near_plane", NEAR_PLANE_THRESHOLD)
            ),
        )

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def filter_records(self, records: Iterable[ObjectRecord]) -> List[ObjectRecord]:
        """Keep the records accepted by the gate, in input order."""
        return [rec for rec in records if self.record_filter(rec)]

    def build_instances(self, records: Iterable[ObjectRecord]) -> List[BoxInstance]:
        """Build one box per record."""
        return [BoxInstance.from_record(rec, self.calibration) for rec in records]

    @staticmethod
    def order_by_distance(instances: Iterable[BoxInstance]) -> List[BoxInstance]:
        """Sort nearest first; equal distances keep their input order."""
        return sorted(instances, key=lambda inst: inst.distance)

    def select_visible(
        self,
        instances: Iterable[BoxInstance],
        image_width: int,
        image_height: int,
    ) -> List[BoxInstance]:
        """Keep boxes fully inside the image, order preserved."""
        return [
            inst for inst in instances
            if inst.is_visible(image_width, image_height, self.near_plane)
        ]

    def render(
        self,
        instances: Sequence[BoxInstance],
        image: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Draw boxes onto a copy of ``image`` and build the occupancy mask.

        Wireframes are drawn first for all boxes, then hulls are filled in a
        second pass in the same order (the last box wins where hulls overlap).

        Args:
            instances: Boxes to draw, nearest first.
            image: Source image; left untouched.

        Returns:
            (annotated image, float32 mask of the same height and width)
        """
        check_image_buffer(image)

        annotated = image.copy()
        mask = np.zeros(image.shape[:2], dtype=np.float32)

        for inst in instances:
            inst.render_to(annotated, self.render_config)

        for inst in instances:
            inst.accumulate_mask(mask, self.render_config.mask_value)

        return annotated, mask

    # -------------------------------------------------------------------------
    # Full pipeline
    # -------------------------------------------------------------------------

    def process(
        self,
        records: Sequence[ObjectRecord],
        image: np.ndarray,
    ) -> FrameResult:
        """
        Run all stages on one frame.

        Args:
            records: Raw object records of the frame.
            image: Camera image (H, W, 3).

        Returns:
            FrameResult with the annotated image, mask and visible boxes.

        Raises:
            InvalidImageError: If the image is None or empty.
        """
        check_image_buffer(image)
        height, width = image.shape[:2]

        kept = self.filter_records(records)
        instances = self.build_instances(kept)
        instances = self.order_by_distance(instances)
        instances = self.select_visible(instances, width, height)
        annotated, mask = self.render(instances, image)

        result = FrameResult(
            image=annotated,
            mask=mask,
            instances=instances,
            num_records=len(records),
            num_kept=len(kept),
        )

        self.logger.debug(
            f"records={result.num_records} kept={result.num_kept} "
            f"visible={result.num_visible}"
        )

        return result
