"""
Pre-filtering of raw object records.

Records are gated before any geometry is built, so detections that can never
be drawn (excluded classes, objects behind or far beside the camera) cost
nothing. A gate is any callable ``ObjectRecord -> bool`` returning True for
records to keep; RecordGate is the default one.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet

from ..data.frame_loader import ObjectRecord

RecordFilter = Callable[[ObjectRecord], bool]


@dataclass(frozen=True)
class RecordGate:
    """
    Default record gate: excluded classes plus a spatial corridor.

    Attributes:
        excluded_class_ids: Class ids never drawn.
        min_forward: Minimum center x (meters).
        max_forward: Maximum center x (meters).
        max_lateral: Maximum |center y| (meters).

    Usage:
        gate = RecordGate(excluded_class_ids=frozenset({2}))
        kept = [rec for rec in records if gate(rec)]
    """
    excluded_class_ids: FrozenSet[int] = frozenset({2})
    min_forward: float = 4.0
    max_forward: float = 40.0
    max_lateral: float = 10.0

    def __call__(self, record: ObjectRecord) -> bool:
        if record.class_id in self.excluded_class_ids:
            return False
        x, y = record.center[0], record.center[1]
        return self.min_forward <= x <= self.max_forward and abs(y) <= self.max_lateral

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "RecordGate":
        """Build from the ``filter`` section of the YAML config."""
        defaults = cls()
        return cls(
            excluded_class_ids=frozenset(
                int(c) for c in config.get("excluded_class_ids", defaults.excluded_class_ids)
            ),
            min_forward=float(config.get("min_forward", defaults.min_forward)),
            max_forward=float(config.get("max_forward", defaults.max_forward)),
            max_lateral=float(config.get("max_lateral", defaults.max_lateral)),
        )

    def __repr__(self) -> str:
        return (
            f"RecordGate("
            f"excluded={sorted(self.excluded_class_ids)}, "
            f"x in [{self.min_forward}, {self.max_forward}], "
            f"|y| <= {self.max_lateral})"
        )


def keep_all(record: ObjectRecord) -> bool:
    """Gate that keeps every record."""
    return True
