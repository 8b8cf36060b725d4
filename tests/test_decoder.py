"""Tests for raw tensor decoding."""

from __future__ import annotations

import numpy as np
import pytest

from doorsight.detection.decoder import decode_tensor
from doorsight.detection.tensor_layout import DOOR_LAYOUT, OBSTACLE_LAYOUT, TensorLayout
from doorsight.detection.types import DetectionKind
from doorsight.errors import InferenceError

S = 640


def _door_tensor(*anchors: tuple[int, float, float, float, float, float]) -> np.ndarray:
    out = np.zeros((1, 5, 8400), dtype=np.float32)
    for index, x, y, w, h, objectness in anchors:
        out[0, :, index] = (x, y, w, h, objectness)
    return out


def _obstacle_tensor(index: int, box: tuple[float, float, float, float], scores: dict[int, float]) -> np.ndarray:
    out = np.zeros((1, 84, 8400), dtype=np.float32)
    out[0, 0:4, index] = box
    for class_id, score in scores.items():
        out[0, 4 + class_id, index] = score
    return out


def test_door_anchor_decodes_to_scaled_box() -> None:
    tensor = _door_tensor((7, 0.2 * S, 0.5 * S, 0.1 * S, 0.3 * S, 0.9))
    detections = decode_tensor(tensor, DOOR_LAYOUT, 640, 640)

    assert len(detections) == 1
    door = detections[0]
    assert door.label == "Door"
    assert door.kind == DetectionKind.DOOR
    assert door.confidence == pytest.approx(0.9, abs=1e-6)
    assert door.bbox == (96, 224, 160, 416)


def test_boxes_scale_independently_per_axis() -> None:
    tensor = _door_tensor((0, 320, 320, 64, 64, 0.8))
    detections = decode_tensor(tensor, DOOR_LAYOUT, 1280, 720)

    assert detections[0].bbox == (576, 324, 704, 396)


def test_objectness_at_threshold_is_discarded() -> None:
    tensor = _door_tensor((0, 320, 320, 64, 64, 0.5), (1, 100, 100, 50, 50, 0.51))
    detections = decode_tensor(tensor, DOOR_LAYOUT, 640, 640)

    assert len(detections) == 1
    assert detections[0].confidence == pytest.approx(0.51, abs=1e-6)


def test_door_output_keeps_anchor_order() -> None:
    tensor = _door_tensor((3, 100, 100, 50, 50, 0.6), (10, 400, 400, 50, 50, 0.9))
    detections = decode_tensor(tensor, DOOR_LAYOUT, 640, 640)

    assert [round(d.confidence, 2) for d in detections] == [0.6, 0.9]


def test_boxes_are_clamped_to_image_bounds() -> None:
    tensor = _door_tensor(
        (0, 10, 10, 100, 100, 0.9),
        (1, 630, 635, 100, 100, 0.9),
        (2, 320, 320, 2000, 2000, 0.9),
    )
    detections = decode_tensor(tensor, DOOR_LAYOUT, 640, 480)

    assert len(detections) == 3
    for det in detections:
        left, top, right, bottom = det.bbox
        assert 0 <= left < right <= 640
        assert 0 <= top < bottom <= 480


def test_degenerate_boxes_are_dropped() -> None:
    tensor = _door_tensor(
        (0, 320, 320, 0, 100, 0.9),      # zero width
        (1, -200, 320, 20, 20, 0.9),     # entirely left of the image
        (2, 320.5, 320.5, 0.4, 0.4, 0.9),  # collapses to one pixel column
    )
    assert decode_tensor(tensor, DOOR_LAYOUT, 640, 640) == []


def test_non_finite_coordinates_are_dropped() -> None:
    tensor = _door_tensor((0, np.nan, 320, 50, 50, 0.9), (1, 320, 320, 50, 50, 0.9))
    detections = decode_tensor(tensor, DOOR_LAYOUT, 640, 640)

    assert len(detections) == 1


def test_obstacle_uses_highest_class_score() -> None:
    tensor = _obstacle_tensor(42, (320, 320, 100, 200), {0: 0.7, 56: 0.6})
    detections = decode_tensor(tensor, OBSTACLE_LAYOUT, 640, 640)

    assert len(detections) == 1
    person = detections[0]
    assert person.label == "person"
    assert person.class_id == 0
    assert person.kind == DetectionKind.OBSTACLE
    assert person.confidence == pytest.approx(0.7, abs=1e-6)
    assert person.bbox == (270, 220, 370, 420)


def test_obstacle_ties_resolve_to_lowest_class_index() -> None:
    tensor = _obstacle_tensor(0, (320, 320, 100, 100), {5: 0.8, 2: 0.8})
    detections = decode_tensor(tensor, OBSTACLE_LAYOUT, 640, 640)

    assert detections[0].class_id == 2
    assert detections[0].label == "car"


def test_obstacle_below_threshold_is_discarded() -> None:
    tensor = _obstacle_tensor(0, (320, 320, 100, 100), {0: 0.5, 1: 0.3})
    assert decode_tensor(tensor, OBSTACLE_LAYOUT, 640, 640) == []


def test_short_label_table_yields_unknown() -> None:
    layout = TensorLayout(
        name="tiny",
        kind=DetectionKind.OBSTACLE,
        channels=6,
        score_start=4,
        score_end=6,
        labels=("chair",),
        num_anchors=None,
    )
    tensor = np.zeros((1, 6, 3), dtype=np.float32)
    tensor[0, :, 1] = (320, 320, 100, 100, 0.1, 0.9)

    detections = decode_tensor(tensor, layout, 640, 640)

    assert detections[0].class_id == 1
    assert detections[0].label == "Unknown"


def test_door_and_obstacle_layouts_scale_boxes_identically() -> None:
    box = (211.7, 95.3, 87.9, 301.1)
    door = _door_tensor((5, *box, 0.9))
    obstacle = _obstacle_tensor(5, box, {13: 0.9})

    for width, height in [(640, 640), (1920, 1080), (480, 640)]:
        door_det = decode_tensor(door, DOOR_LAYOUT, width, height)[0]
        obstacle_det = decode_tensor(obstacle, OBSTACLE_LAYOUT, width, height)[0]
        assert door_det.bbox == obstacle_det.bbox


def test_transposed_export_layout_is_accepted() -> None:
    tensor = _door_tensor((7, 128, 320, 64, 192, 0.9))
    transposed = np.transpose(tensor, (0, 2, 1))

    assert decode_tensor(transposed, DOOR_LAYOUT, 640, 640) == decode_tensor(tensor, DOOR_LAYOUT, 640, 640)


def test_unbatched_tensor_is_accepted() -> None:
    tensor = _door_tensor((7, 128, 320, 64, 192, 0.9))
    assert len(decode_tensor(tensor[0], DOOR_LAYOUT, 640, 640)) == 1


@pytest.mark.parametrize(
    "shape",
    [
        (1, 6, 8400),
        (2, 5, 8400),
        (1, 5, 100),
        (8400,),
        (1, 1, 5, 8400),
    ],
)
def test_malformed_shapes_raise_inference_error(shape: tuple[int, ...]) -> None:
    with pytest.raises(InferenceError):
        decode_tensor(np.zeros(shape, dtype=np.float32), DOOR_LAYOUT, 640, 640)


def test_obstacle_tensor_rejected_by_door_layout() -> None:
    with pytest.raises(InferenceError):
        decode_tensor(np.zeros((1, 84, 8400), dtype=np.float32), DOOR_LAYOUT, 640, 640)
