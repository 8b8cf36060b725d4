"""Image sources: live camera and still image files."""

import cv2
import numpy as np
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from doorsight.errors import InvalidImageError
from doorsight.utils.logger import get_logger

logger = get_logger(__name__)

READ_RETRY_DELAY_S = 0.05


class CameraError(Exception):
    """Exception raised when the camera cannot be opened."""
    pass


@dataclass(frozen=True)
class CapturedFrame:
    """A captured BGR image with its clockwise rotation hint."""
    image: np.ndarray
    rotation_degrees: int = 0

    @property
    def width(self) -> int:
        return self.image.shape[1]

    @property
    def height(self) -> int:
        return self.image.shape[0]


class FrameSource(Protocol):
    def capture(self) -> CapturedFrame:
        ...


class StaticImageSource:
    """Serves the same image file on every capture."""

    def __init__(self, image_path: str, rotation_degrees: int = 0):
        """
        Load an image file.

        Args:
            image_path: Path to a JPEG/PNG image.
            rotation_degrees: Clockwise rotation to report with each capture.

        Raises:
            InvalidImageError: If the file is missing or cannot be decoded.
        """
        path = Path(image_path)
        image = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if image is None:
            raise InvalidImageError(f"Could not read image: {path}")

        self.path = path
        self.image = image
        self.rotation_degrees = rotation_degrees
        logger.info(f"Loaded {path} ({image.shape[1]}x{image.shape[0]})")

    def capture(self) -> CapturedFrame:
        return CapturedFrame(image=self.image.copy(), rotation_degrees=self.rotation_degrees)


class CameraFrameSource:
    """
    Single camera with a background reader that keeps the latest frame.

    capture() returns a copy of the most recent frame, so preview and
    detection can share one device.
    """

    def __init__(
        self,
        device_index: int = 0,
        width: Optional[int] = None,
        height: Optional[int] = None,
        rotation_degrees: int = 0
    ):
        """
        Initialize camera source.

        Args:
            device_index: OpenCV device index.
            width: Requested frame width (camera default if None).
            height: Requested frame height (camera default if None).
            rotation_degrees: Clockwise rotation reported with each capture.
        """
        self.device_index = device_index
        self.width = width
        self.height = height
        self.rotation_degrees = rotation_degrees

        self.cap: Optional[cv2.VideoCapture] = None
        self.running = False
        self.lock = threading.Lock()
        self._latest: Optional[np.ndarray] = None
        self._thread: Optional[threading.Thread] = None

    def open(self) -> None:
        """
        Open the camera and start the reader thread.

        Raises:
            CameraError: If the device cannot be opened.
        """
        cap = cv2.VideoCapture(self.device_index)
        if not cap.isOpened():
            cap.release()
            raise CameraError(f"Failed to open camera (index {self.device_index})")

        if self.width is not None:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        if self.height is not None:
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        self.cap = cap
        self.running = True
        self._thread = threading.Thread(target=self._read_loop, name="doorsight-camera", daemon=True)
        self._thread.start()
        logger.info(f"Camera opened (index {self.device_index})")

    def _read_loop(self) -> None:
        logger.debug("Camera reader started")
        failures = 0
        while self.running:
            ret, frame = self.cap.read()
            if not ret or frame is None:
                # Warn once per outage
                if failures == 0:
                    logger.warning("Failed to read camera frame, retrying")
                failures += 1
                time.sleep(READ_RETRY_DELAY_S)
                continue
            if failures:
                logger.info(f"Camera recovered after {failures} failed reads")
                failures = 0
            with self.lock:
                self._latest = frame
        logger.debug("Camera reader stopped")

    def latest(self) -> Optional[np.ndarray]:
        """Most recent frame for preview, or None before the first read."""
        with self.lock:
            return None if self._latest is None else self._latest.copy()

    def capture(self) -> CapturedFrame:
        """
        Capture the most recent frame.

        Raises:
            InvalidImageError: If no frame has been read yet.
        """
        frame = self.latest()
        if frame is None:
            raise InvalidImageError("No camera frame available")
        return CapturedFrame(image=frame, rotation_degrees=self.rotation_degrees)

    def close(self) -> None:
        """Stop the reader and release the device."""
        self.running = False
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self._thread = None

        if self.cap is not None:
            self.cap.release()
            self.cap = None
        logger.info("Camera closed")

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
