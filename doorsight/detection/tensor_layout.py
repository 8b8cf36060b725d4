"""Descriptors for the raw output tensor layouts of the two detection models."""

from dataclasses import dataclass
from typing import Optional, Tuple

from .types import DetectionKind

UNKNOWN_LABEL = "Unknown"

# COCO class names for YOLOv8
COCO_CLASSES = (
    "person", "bicycle", "car", "motorcycle", "airplane", "bus", "train", "truck", "boat",
    "traffic light", "fire hydrant", "stop sign", "parking meter", "bench", "bird", "cat",
    "dog", "horse", "sheep", "cow", "elephant", "bear", "zebra", "giraffe", "backpack",
    "umbrella", "handbag", "tie", "suitcase", "frisbee", "skis", "snowboard", "sports ball",
    "kite", "baseball bat", "baseball glove", "skateboard", "surfboard", "tennis racket",
    "bottle", "wine glass", "cup", "fork", "knife", "spoon", "bowl", "banana", "apple",
    "sandwich", "orange", "broccoli", "carrot", "hot dog", "pizza", "donut", "cake",
    "chair", "couch", "potted plant", "bed", "dining table", "toilet", "tv", "laptop",
    "mouse", "remote", "keyboard", "cell phone", "microwave", "oven", "toaster", "sink",
    "refrigerator", "book", "clock", "vase", "scissors", "teddy bear", "hair drier", "toothbrush"
)

NUM_ANCHORS = 8400


@dataclass(frozen=True)
class TensorLayout:
    """
    Shape and meaning of a YOLO-style output tensor [1][channels][anchors].

    Channels 0-3 hold the box (center x, center y, width, height) in
    model-input pixels; channels [score_start, score_end) hold scores.
    A single score channel is treated as objectness.
    """
    name: str
    kind: DetectionKind
    channels: int
    score_start: int
    score_end: int
    labels: Tuple[str, ...]
    num_anchors: Optional[int] = NUM_ANCHORS

    @property
    def num_scores(self) -> int:
        return self.score_end - self.score_start

    def label_for(self, class_id: int) -> str:
        """Label for class_id, or UNKNOWN_LABEL if the table is too short."""
        if 0 <= class_id < len(self.labels):
            return self.labels[class_id]
        return UNKNOWN_LABEL


DOOR_LAYOUT = TensorLayout(
    name="door",
    kind=DetectionKind.DOOR,
    channels=5,
    score_start=4,
    score_end=5,
    labels=("Door",),
)

OBSTACLE_LAYOUT = TensorLayout(
    name="obstacle",
    kind=DetectionKind.OBSTACLE,
    channels=84,
    score_start=4,
    score_end=84,
    labels=COCO_CLASSES,
)
