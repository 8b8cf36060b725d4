"""Overlay drawing for door and obstacle detections."""

import cv2
import numpy as np
from typing import Sequence

from .types import Detection

DOOR_COLOR = (0, 255, 0)        # Green
OBSTACLE_COLOR = (0, 0, 255)    # Red
CENTER_COLOR = (0, 0, 255)      # Red dot on door centers
GUIDE_COLOR = (255, 255, 0)     # Cyan line from the user to a door
AXIS_COLOR = (0, 255, 255)      # Yellow heading axis


def _draw_label(frame: np.ndarray, det: Detection, color: tuple) -> None:
    label = f"{det.class_name} {det.confidence:.2f}"
    x1, y1, x2, y2 = det.bbox

    font = cv2.FONT_HERSHEY_SIMPLEX
    font_scale = 0.5
    thickness = 1
    (text_w, text_h), _ = cv2.getTextSize(label, font, font_scale, thickness)

    label_y = y1 - 10 if y1 > 30 else y2 + 20
    cv2.rectangle(
        frame,
        (x1, label_y - text_h - 4),
        (x1 + text_w + 4, label_y + 4),
        color,
        -1
    )
    cv2.putText(frame, label, (x1 + 2, label_y), font, font_scale, (255, 255, 255), thickness, cv2.LINE_AA)


def draw_detections(
    frame: np.ndarray,
    doors: Sequence[Detection],
    obstacles: Sequence[Detection],
    show_labels: bool = True
) -> np.ndarray:
    """
    Draw door and obstacle boxes.

    Doors get a center marker and a guide line from the bottom-center of the
    frame; a vertical heading axis is drawn through the middle.

    Args:
        frame: BGR image in the detections' coordinate space (modified in place).
        doors: Suppressed door detections.
        obstacles: Suppressed obstacle detections.
        show_labels: Whether to draw class/confidence labels.

    Returns:
        Frame with overlays drawn.
    """
    h, w = frame.shape[:2]
    origin = (w // 2, h)
    cv2.line(frame, origin, (w // 2, 0), AXIS_COLOR, 2)

    for det in doors:
        x1, y1, x2, y2 = det.bbox
        cv2.rectangle(frame, (x1, y1), (x2, y2), DOOR_COLOR, 4)
        cx, cy = det.center
        center = (int(cx), int(cy))
        cv2.circle(frame, center, 10, CENTER_COLOR, -1)
        cv2.line(frame, origin, center, GUIDE_COLOR, 3)
        if show_labels:
            _draw_label(frame, det, DOOR_COLOR)

    for det in obstacles:
        x1, y1, x2, y2 = det.bbox
        cv2.rectangle(frame, (x1, y1), (x2, y2), OBSTACLE_COLOR, 4)
        if show_labels:
            _draw_label(frame, det, OBSTACLE_COLOR)

    return frame


def detection_summary(doors: Sequence[Detection], obstacles: Sequence[Detection]) -> list:
    """Status lines with counts and the top confidence of each kind."""
    if not doors and not obstacles:
        return ["No doors or obstacles detected"]

    lines = []
    if obstacles:
        top = max(obstacles, key=lambda d: d.confidence)
        lines.append(f"Obstacles: {len(obstacles)} (Confidence: {top.confidence:.2f})")
    if doors:
        top = max(doors, key=lambda d: d.confidence)
        lines.append(f"Doors: {len(doors)} (Confidence: {top.confidence:.2f})")
    return lines


def draw_status(frame: np.ndarray, guidance_text: str, status_lines: Sequence[str]) -> np.ndarray:
    """
    Draw guidance text and status lines on a translucent panel.

    Args:
        frame: BGR image to draw on.
        guidance_text: Current guidance instruction.
        status_lines: Lines from detection_summary().

    Returns:
        Frame with the panel drawn.
    """
    lines = [f"Guidance: {guidance_text}"] + list(status_lines)

    font = cv2.FONT_HERSHEY_SIMPLEX
    font_scale = 0.6
    thickness = 1
    line_height = 24
    padding = 10

    max_text_w = max(cv2.getTextSize(line, font, font_scale, thickness)[0][0] for line in lines)
    box_w = max_text_w + padding * 2
    box_h = len(lines) * line_height + padding * 2

    overlay = frame.copy()
    cv2.rectangle(overlay, (10, 10), (10 + box_w, 10 + box_h), (0, 0, 0), -1)
    cv2.addWeighted(overlay, 0.6, frame, 0.4, 0, frame)

    for i, line in enumerate(lines):
        y = 10 + padding + (i + 1) * line_height - 6
        cv2.putText(frame, line, (10 + padding, y), font, font_scale, (255, 255, 255), thickness, cv2.LINE_AA)

    return frame
