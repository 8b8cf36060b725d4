"""Decode raw YOLO output tensors into Detection objects."""

import numpy as np
from typing import List

from doorsight.errors import InferenceError
from doorsight.utils.logger import get_logger
from .tensor_layout import TensorLayout, UNKNOWN_LABEL
from .types import Detection

logger = get_logger(__name__)


def _channels_first(output: np.ndarray, layout: TensorLayout) -> np.ndarray:
    """
    Reshape a model output to [channels, anchors].

    Accepts [1][C][N], [C][N] and the transposed [1][N][C] / [N][C] export.

    Raises:
        InferenceError: If the shape does not match the layout.
    """
    try:
        arr = np.asarray(output, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise InferenceError(f"{layout.name} output is not numeric: {e}") from e

    if arr.ndim == 3:
        if arr.shape[0] != 1:
            raise InferenceError(f"{layout.name} output has batch size {arr.shape[0]}, expected 1")
        arr = arr[0]

    if arr.ndim != 2:
        raise InferenceError(f"{layout.name} output has shape {np.shape(output)}, expected 3 dims")

    if arr.shape[0] != layout.channels:
        if arr.shape[1] == layout.channels:
            arr = arr.T
        else:
            raise InferenceError(
                f"{layout.name} output has shape {np.shape(output)}, "
                f"expected {layout.channels} channels"
            )

    if layout.num_anchors is not None and arr.shape[1] != layout.num_anchors:
        raise InferenceError(
            f"{layout.name} output has {arr.shape[1]} anchors, expected {layout.num_anchors}"
        )

    return arr


def decode_tensor(
    output: np.ndarray,
    layout: TensorLayout,
    width: int,
    height: int,
    input_size: int = 640,
    confidence_threshold: float = 0.5
) -> List[Detection]:
    """
    Decode a raw output tensor into un-suppressed detections.

    Anchors whose best score is not strictly above the threshold are
    discarded. Boxes are scaled from model-input pixels to the source image,
    clamped to its bounds and truncated to integer pixels; boxes that end up
    with no width or height are dropped.

    Args:
        output: Raw model output, logically [1][channels][anchors].
        layout: Tensor layout descriptor (DOOR_LAYOUT or OBSTACLE_LAYOUT).
        width: Source image width in pixels.
        height: Source image height in pixels.
        input_size: Square model input size.
        confidence_threshold: Minimum score (exclusive).

    Returns:
        Detections in anchor-index order.

    Raises:
        InferenceError: If the output shape does not match the layout.
    """
    arr = _channels_first(output, layout)
    num_anchors = arr.shape[1]
    if num_anchors == 0:
        return []

    # First maximum wins, so ties resolve to the lowest class index
    scores = arr[layout.score_start:layout.score_end]
    class_ids = np.argmax(scores, axis=0)
    best_scores = scores[class_ids, np.arange(num_anchors)]

    boxes = arr[0:4]
    keep = (best_scores > confidence_threshold) & np.all(np.isfinite(boxes), axis=0)
    if not np.any(keep):
        logger.debug(f"{layout.name}: no anchors above {confidence_threshold}")
        return []

    scale_x = width / input_size
    scale_y = height / input_size

    cx = boxes[0, keep] * scale_x
    cy = boxes[1, keep] * scale_y
    w = boxes[2, keep] * scale_x
    h = boxes[3, keep] * scale_y

    left = np.clip(cx - w / 2, 0, width).astype(np.int64)
    top = np.clip(cy - h / 2, 0, height).astype(np.int64)
    right = np.clip(cx + w / 2, 0, width).astype(np.int64)
    bottom = np.clip(cy + h / 2, 0, height).astype(np.int64)

    kept_ids = class_ids[keep]
    kept_scores = np.minimum(best_scores[keep], 1.0)

    detections = []
    unknown = 0
    for i in range(len(kept_ids)):
        x1, y1, x2, y2 = int(left[i]), int(top[i]), int(right[i]), int(bottom[i])
        if x2 <= x1 or y2 <= y1:
            continue

        class_id = int(kept_ids[i])
        class_name = layout.label_for(class_id)
        if class_name == UNKNOWN_LABEL:
            unknown += 1

        detections.append(Detection(
            bbox=(x1, y1, x2, y2),
            class_id=class_id,
            class_name=class_name,
            confidence=float(kept_scores[i]),
            kind=layout.kind
        ))

    if unknown:
        logger.warning(
            f"{layout.name}: {unknown} detections had class ids beyond the "
            f"{len(layout.labels)}-entry label table, labelled '{UNKNOWN_LABEL}'"
        )

    logger.debug(
        f"{layout.name}: {int(np.count_nonzero(keep))} anchors above threshold, "
        f"{len(detections)} non-degenerate detections"
    )
    return detections
