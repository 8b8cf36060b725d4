"""Greedy non-maximum suppression over Detection lists."""

from typing import List, Sequence, Tuple

from doorsight.utils.logger import get_logger
from .types import Detection

logger = get_logger(__name__)


def iou(box1: Tuple[float, float, float, float], box2: Tuple[float, float, float, float]) -> float:
    """
    Intersection-over-union of two (left, top, right, bottom) boxes.

    Non-positive overlap gives 0.0, as does a zero-area union.
    """
    x1_1, y1_1, x2_1, y2_1 = box1
    x1_2, y1_2, x2_2, y2_2 = box2

    inter_w = max(0, min(x2_1, x2_2) - max(x1_1, x1_2))
    inter_h = max(0, min(y2_1, y2_2) - max(y1_1, y1_2))
    intersection = inter_w * inter_h

    area1 = (x2_1 - x1_1) * (y2_1 - y1_1)
    area2 = (x2_2 - x1_2) * (y2_2 - y1_2)
    union = area1 + area2 - intersection

    return intersection / union if union > 0 else 0.0


def non_max_suppression(
    detections: Sequence[Detection],
    iou_threshold: float = 0.8,
    class_aware: bool = False
) -> List[Detection]:
    """
    Keep the most confident detection of every overlapping group.

    Candidates are visited in descending confidence (stable for ties); each
    survivor removes every remaining candidate whose IoU with it is at or
    above iou_threshold.

    Args:
        detections: Candidates of one kind (doors or obstacles).
        iou_threshold: Overlap at which a candidate is suppressed.
        class_aware: Only suppress candidates sharing the survivor's class.

    Returns:
        Survivors in descending confidence order.
    """
    if not detections:
        return []

    remaining = sorted(detections, key=lambda d: d.confidence, reverse=True)

    keep = []
    while remaining:
        best = remaining.pop(0)
        keep.append(best)

        remaining = [
            d for d in remaining
            if (class_aware and d.class_id != best.class_id)
            or iou(best.bbox, d.bbox) < iou_threshold
        ]

    logger.debug(f"NMS kept {len(keep)} of {len(detections)} detections")
    return keep
