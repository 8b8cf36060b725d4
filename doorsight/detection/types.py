"""Detection value types shared by decoder, suppressor and guidance."""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class DetectionKind(str, Enum):
    """Which model produced a detection."""
    DOOR = "door"
    OBSTACLE = "obstacle"


@dataclass(frozen=True)
class Detection:
    """Single decoded detection in source-image pixel coordinates."""
    bbox: Tuple[int, int, int, int]  # (left, top, right, bottom)
    class_id: int
    class_name: str
    confidence: float
    kind: DetectionKind = DetectionKind.OBSTACLE

    @property
    def label(self) -> str:
        return self.class_name

    @property
    def width(self) -> int:
        return self.bbox[2] - self.bbox[0]

    @property
    def height(self) -> int:
        return self.bbox[3] - self.bbox[1]

    @property
    def area(self) -> int:
        return max(0, self.width) * max(0, self.height)

    @property
    def center(self) -> Tuple[float, float]:
        x1, y1, x2, y2 = self.bbox
        return (x1 + x2) / 2.0, (y1 + y2) / 2.0
