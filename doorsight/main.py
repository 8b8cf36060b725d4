"""
DoorSight - Door and Obstacle Guidance

Detects doors and obstacles in camera captures and speaks a short
directional instruction. Runs on a live camera or a single still image.
"""

import argparse
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from doorsight.camera.capture import CameraError, CameraFrameSource, StaticImageSource
from doorsight.config.settings import get_settings
from doorsight.detection.inference import TFLiteEngine
from doorsight.detection.preprocess import rotate_image
from doorsight.detection.visualization import detection_summary, draw_detections, draw_status
from doorsight.errors import ConfigurationError, InvalidImageError
from doorsight.navigation.navigation_pipeline import GuidancePipeline, GuidanceSnapshot
from doorsight.navigation.scheduler import ContinuousScanScheduler
from doorsight.navigation.tts_output import TTSOutput
from doorsight.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

KEY_ESC = 27
KEY_SPACE = 32


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="DoorSight - Door and Obstacle Guidance"
    )
    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help='Path to config.yaml (default: config/config.yaml or $DOORSIGHT_CONFIG)'
    )
    parser.add_argument(
        '--image',
        type=Path,
        default=None,
        help='Run a single guidance cycle on a still image instead of the camera'
    )
    parser.add_argument(
        '--save-overlay',
        type=Path,
        default=None,
        help='With --image, write the annotated image to this path'
    )
    parser.add_argument(
        '--rotation',
        type=int,
        default=None,
        help='Clockwise rotation in degrees applied to captures'
    )
    parser.add_argument(
        '--continuous',
        action='store_true',
        help='Start with continuous guidance enabled'
    )
    parser.add_argument(
        '--no-speech',
        action='store_true',
        help='Disable spoken output'
    )
    return parser.parse_args(argv)


class DoorSightApp:
    """Door and obstacle guidance application."""

    def __init__(self, args):
        """
        Initialize DoorSight.

        Args:
            args: Parsed command line arguments.
        """
        self.args = args
        self.settings = get_settings(args.config)
        self.logger = configure_logging(self.settings.logging)

        self.rotation = args.rotation if args.rotation is not None else self.settings.camera.rotation_degrees

        self.tts: Optional[TTSOutput] = None
        self.pipeline: Optional[GuidancePipeline] = None
        self.scheduler: Optional[ContinuousScanScheduler] = None
        self.camera: Optional[CameraFrameSource] = None

        self.running = False
        self._snapshot_lock = threading.Lock()
        self._snapshot: Optional[GuidanceSnapshot] = None

    def setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, shutting down...")
            self.running = False

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def _on_snapshot(self, snapshot: GuidanceSnapshot) -> None:
        with self._snapshot_lock:
            self._snapshot = snapshot

    def initialize(self) -> bool:
        """
        Load models and create the pipeline.

        Returns:
            True if successful, False otherwise.
        """
        models = self.settings.models
        try:
            door_engine = TFLiteEngine(models.door_model_path, num_threads=models.num_threads)
            obstacle_engine = TFLiteEngine(models.obstacle_model_path, num_threads=models.num_threads)
        except (ImportError, FileNotFoundError, ValueError, RuntimeError) as e:
            self.logger.error(f"Failed to load models: {e}")
            return False

        speech_cfg = self.settings.speech
        self.tts = TTSOutput(
            voice=speech_cfg.voice,
            rate=speech_cfg.rate,
            enabled=speech_cfg.enabled and not self.args.no_speech
        )

        self.pipeline = GuidancePipeline.from_settings(
            self.settings,
            door_engine,
            obstacle_engine,
            speech=self.tts,
            on_snapshot=self._on_snapshot
        )
        return True

    def run_image(self) -> int:
        """
        Run one cycle on the --image file and print the guidance.

        Returns:
            Exit code.
        """
        try:
            source = StaticImageSource(str(self.args.image), rotation_degrees=self.rotation)
        except InvalidImageError as e:
            self.logger.error(str(e))
            return 1

        result = self.pipeline.run_capture(source)
        if not result.ok:
            self.logger.error(f"Guidance failed: {result.error}")
            return 1

        snapshot = result.snapshot
        print(snapshot.guidance_text)
        for line in detection_summary(snapshot.doors, snapshot.obstacles):
            print(line)

        if self.args.save_overlay is not None:
            canvas = rotate_image(source.image, self.rotation)
            draw_detections(canvas, snapshot.doors, snapshot.obstacles)
            cv2.imwrite(str(self.args.save_overlay), canvas)
            self.logger.info(f"Overlay written to {self.args.save_overlay}")

        if self.tts is not None:
            self.tts.wait_for_completion()
        return 0

    def _manual_capture(self) -> None:
        """Run a capture on a worker thread so the preview stays responsive."""
        def work():
            self.pipeline.run_capture(self.camera)
            self.scheduler.mark_completed()

        threading.Thread(target=work, name="doorsight-capture", daemon=True).start()

    def _render(self, frame: np.ndarray) -> np.ndarray:
        canvas = rotate_image(frame, self.rotation)
        with self._snapshot_lock:
            snapshot = self._snapshot

        if snapshot is not None:
            if (snapshot.image_width, snapshot.image_height) == (canvas.shape[1], canvas.shape[0]):
                draw_detections(canvas, snapshot.doors, snapshot.obstacles)
            status = detection_summary(snapshot.doors, snapshot.obstacles)
        else:
            status = []

        mode = "continuous" if self.scheduler.is_scanning else "manual"
        status = status + [f"Mode: {mode} (SPACE capture, g guidance, q quit)"]
        return draw_status(canvas, self.pipeline.guidance_text, status)

    def run_camera(self) -> int:
        """
        Camera preview loop with manual and continuous guidance.

        Returns:
            Exit code.
        """
        cam_cfg = self.settings.camera
        self.camera = CameraFrameSource(
            device_index=cam_cfg.device_index,
            width=cam_cfg.width,
            height=cam_cfg.height,
            rotation_degrees=self.rotation
        )
        try:
            self.camera.open()
        except CameraError as e:
            self.logger.error(f"Camera error: {e}")
            return 1

        scan_cfg = self.settings.scan
        self.scheduler = ContinuousScanScheduler(
            run_once=lambda: self.pipeline.run_capture(self.camera),
            speech=self.tts,
            poll_interval_s=scan_cfg.poll_interval_s,
            cooldown_ms=scan_cfg.cooldown_ms
        )
        if self.args.continuous:
            self.scheduler.enable()

        preview = self.settings.display.preview_enabled
        window = self.settings.display.window_name
        if preview:
            cv2.namedWindow(window, cv2.WINDOW_NORMAL)

        self.logger.info("Press SPACE to capture, 'g' to toggle continuous guidance, 'q' or ESC to quit")
        self.running = True
        try:
            while self.running:
                frame = self.camera.latest()
                if not preview:
                    # Headless: continuous guidance only
                    if not self.scheduler.is_scanning:
                        self.scheduler.enable()
                    time.sleep(0.1)
                    continue

                if frame is not None:
                    cv2.imshow(window, self._render(frame))

                key = cv2.waitKey(30) & 0xFF
                if key in (ord('q'), KEY_ESC):
                    self.logger.info("Quit requested")
                    break
                elif key == KEY_SPACE:
                    self._manual_capture()
                elif key == ord('g'):
                    self.scheduler.toggle()
        finally:
            self.running = False
            if preview:
                cv2.destroyAllWindows()
        return 0

    def cleanup(self) -> None:
        """Cleanup all resources."""
        self.logger.info("Cleaning up resources...")

        if self.scheduler:
            self.scheduler.stop(timeout=5.0)

        if self.camera:
            self.camera.close()

        if self.pipeline:
            self.pipeline.close()

        if self.tts:
            self.tts.close()

        self.logger.info("Cleanup complete")

    def run(self) -> int:
        """
        Run the application.

        Returns:
            Exit code (0 = success, 1 = error).
        """
        self.setup_signal_handlers()

        if not self.initialize():
            self.logger.error("Initialization failed")
            return 1

        try:
            if self.args.image is not None:
                return self.run_image()
            return self.run_camera()
        finally:
            self.cleanup()


def main(argv=None) -> int:
    """
    Main entry point.

    Returns:
        Exit code.
    """
    args = parse_args(argv)
    try:
        app = DoorSightApp(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    return app.run()


if __name__ == "__main__":
    sys.exit(main())
