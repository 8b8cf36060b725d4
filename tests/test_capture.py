"""Tests for image sources."""

from __future__ import annotations

import cv2
import numpy as np
import pytest

from doorsight.camera import capture
from doorsight.camera.capture import CameraFrameSource, StaticImageSource
from doorsight.errors import InvalidImageError


class _ScriptedCapture:
    """Replays read results, then stops the owning source."""

    def __init__(self, source: CameraFrameSource, reads: list[np.ndarray | None]) -> None:
        self.source = source
        self.reads = list(reads)

    def read(self):
        if not self.reads:
            self.source.running = False
            return False, None
        frame = self.reads.pop(0)
        return frame is not None, frame


def test_read_failures_back_off_and_warn_once_per_outage(monkeypatch: pytest.MonkeyPatch) -> None:
    sleeps: list[float] = []
    warnings: list[str] = []
    monkeypatch.setattr(capture.time, "sleep", sleeps.append)
    monkeypatch.setattr(capture.logger, "warning", warnings.append)

    frame = np.full((4, 6, 3), 9, dtype=np.uint8)
    source = CameraFrameSource()
    source.cap = _ScriptedCapture(source, [None, None, None, frame, None])
    source.running = True

    source._read_loop()

    # The final read that stops the loop also counts as a failure
    assert len(sleeps) == 5
    assert all(s == capture.READ_RETRY_DELAY_S for s in sleeps)
    assert len(warnings) == 2
    assert source.latest().tolist() == frame.tolist()


def test_capture_before_first_frame_is_invalid() -> None:
    with pytest.raises(InvalidImageError):
        CameraFrameSource().capture()


def test_static_image_source(tmp_path) -> None:
    path = tmp_path / "door.png"
    cv2.imwrite(str(path), np.zeros((30, 40, 3), dtype=np.uint8))

    source = StaticImageSource(str(path), rotation_degrees=90)
    frame = source.capture()

    assert (frame.width, frame.height) == (40, 30)
    assert frame.rotation_degrees == 90
    assert frame.image is not source.image


def test_static_image_source_rejects_missing_file(tmp_path) -> None:
    with pytest.raises(InvalidImageError):
        StaticImageSource(str(tmp_path / "missing.png"))
