"""Capture-to-announcement pipeline for door and obstacle guidance."""

import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import numpy as np

from doorsight.detection.decoder import decode_tensor
from doorsight.detection.inference import InferenceEngine
from doorsight.detection.nms import non_max_suppression
from doorsight.detection.preprocess import InputEncoding, NormalizedImage, normalize_image
from doorsight.detection.tensor_layout import DOOR_LAYOUT, OBSTACLE_LAYOUT, TensorLayout
from doorsight.detection.types import Detection
from doorsight.errors import InferenceError, InvalidImageError
from doorsight.utils.logger import get_logger
from doorsight.utils.timing import StageTimer
from .debouncer import Announcement, AnnouncementDebouncer
from .guidance import Guidance, GuidanceAdvisor
from .tts_output import SpeechOutput

logger = get_logger(__name__)


@dataclass(frozen=True)
class GuidanceSnapshot:
    """Everything one successful cycle produced, passed by value to the UI."""
    doors: Tuple[Detection, ...]
    obstacles: Tuple[Detection, ...]
    guidance: Guidance
    announcement: Announcement
    image_width: int
    image_height: int

    @property
    def guidance_text(self) -> str:
        return self.announcement.text

    @property
    def spoken(self) -> bool:
        return self.announcement.should_speak


@dataclass(frozen=True)
class CycleResult:
    """Result of one pipeline run: a snapshot or the error that aborted it."""
    snapshot: Optional[GuidanceSnapshot] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.snapshot is not None


class GuidancePipeline:
    """
    Runs normalize -> infer -> decode -> suppress -> guide -> debounce.

    Door and obstacle models are decoded and suppressed independently.
    Image and inference failures abort only the current cycle: guidance
    state and the displayed text are left as they were.
    """

    def __init__(
        self,
        door_engine: InferenceEngine,
        obstacle_engine: InferenceEngine,
        speech: Optional[SpeechOutput] = None,
        advisor: Optional[GuidanceAdvisor] = None,
        debouncer: Optional[AnnouncementDebouncer] = None,
        input_size: int = 640,
        door_encoding: InputEncoding = InputEncoding.FLOAT32,
        obstacle_encoding: InputEncoding = InputEncoding.FLOAT32,
        confidence_threshold: float = 0.5,
        iou_threshold: float = 0.8,
        class_aware_nms: bool = False,
        on_snapshot: Optional[Callable[[GuidanceSnapshot], None]] = None
    ):
        """
        Initialize guidance pipeline.

        Args:
            door_engine: Engine producing [1][5][8400] door tensors.
            obstacle_engine: Engine producing [1][84][8400] obstacle tensors.
            speech: Speech output for announcements (silent if None).
            advisor: Guidance advisor (defaults to standard zones).
            debouncer: Announcement debouncer (defaults to stability 2).
            input_size: Square model input size.
            door_encoding: Input buffer encoding for the door model.
            obstacle_encoding: Input buffer encoding for the obstacle model.
            confidence_threshold: Decoder score threshold.
            iou_threshold: NMS overlap threshold.
            class_aware_nms: Restrict obstacle suppression to the same class.
            on_snapshot: Called with each successful snapshot (e.g., overlay renderer).
        """
        self.door_engine = door_engine
        self.obstacle_engine = obstacle_engine
        self.speech = speech
        self.advisor = advisor or GuidanceAdvisor()
        self.debouncer = debouncer or AnnouncementDebouncer()
        self.input_size = input_size
        self.door_encoding = InputEncoding(door_encoding)
        self.obstacle_encoding = InputEncoding(obstacle_encoding)
        self.confidence_threshold = confidence_threshold
        self.iou_threshold = iou_threshold
        self.class_aware_nms = class_aware_nms
        self.on_snapshot = on_snapshot

        self.cycle_count = 0
        self.last_snapshot: Optional[GuidanceSnapshot] = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings,
        door_engine: InferenceEngine,
        obstacle_engine: InferenceEngine,
        speech: Optional[SpeechOutput] = None,
        on_snapshot: Optional[Callable[[GuidanceSnapshot], None]] = None
    ) -> "GuidancePipeline":
        """Build a pipeline from a Settings instance."""
        guidance = settings.guidance
        return cls(
            door_engine=door_engine,
            obstacle_engine=obstacle_engine,
            speech=speech,
            advisor=GuidanceAdvisor(
                min_confidence=guidance.min_confidence,
                left_threshold=guidance.left_threshold,
                right_threshold=guidance.right_threshold
            ),
            debouncer=AnnouncementDebouncer(stability_count=guidance.stability_count),
            input_size=settings.models.input_size,
            door_encoding=settings.models.door_input_encoding,
            obstacle_encoding=settings.models.obstacle_input_encoding,
            confidence_threshold=settings.detection.confidence_threshold,
            iou_threshold=settings.detection.iou_threshold,
            class_aware_nms=settings.detection.class_aware_nms,
            on_snapshot=on_snapshot
        )

    @property
    def guidance_text(self) -> str:
        """Currently displayed guidance text."""
        return self.debouncer.current_text

    def _infer(self, engine: InferenceEngine, normalized: NormalizedImage, layout: TensorLayout) -> np.ndarray:
        try:
            return engine.run(normalized.tensor)
        except InferenceError:
            raise
        except Exception as e:
            raise InferenceError(f"{layout.name} engine failed: {e}") from e

    def _detect_layout(
        self,
        engine: InferenceEngine,
        normalized: NormalizedImage,
        layout: TensorLayout,
        timer: StageTimer
    ) -> List[Detection]:
        with timer.stage(f"{layout.name}_infer"):
            output = self._infer(engine, normalized, layout)

        with timer.stage(f"{layout.name}_decode"):
            candidates = decode_tensor(
                output,
                layout,
                normalized.source_width,
                normalized.source_height,
                input_size=self.input_size,
                confidence_threshold=self.confidence_threshold
            )

        with timer.stage(f"{layout.name}_nms"):
            return non_max_suppression(
                candidates,
                iou_threshold=self.iou_threshold,
                class_aware=self.class_aware_nms
            )

    def detect(
        self,
        image: np.ndarray,
        rotation_degrees: float = 0,
        timer: Optional[StageTimer] = None
    ) -> Tuple[List[Detection], List[Detection], int, int]:
        """
        Detect doors and obstacles in one image.

        Args:
            image: Captured BGR image.
            rotation_degrees: Clockwise rotation hint from the image source.
            timer: Optional stage timer to fill.

        Returns:
            (doors, obstacles, width, height) with boxes in oriented-image pixels.

        Raises:
            InvalidImageError: If the image is empty.
            InferenceError: If an engine fails or returns a malformed tensor.
        """
        timer = timer or StageTimer()

        with timer.stage("normalize"):
            door_input = normalize_image(
                image, self.input_size, rotation_degrees, self.door_encoding
            )
            if self.obstacle_encoding == self.door_encoding:
                obstacle_input = door_input
            else:
                obstacle_input = normalize_image(
                    image, self.input_size, rotation_degrees, self.obstacle_encoding
                )

        doors = self._detect_layout(self.door_engine, door_input, DOOR_LAYOUT, timer)
        obstacles = self._detect_layout(self.obstacle_engine, obstacle_input, OBSTACLE_LAYOUT, timer)

        return doors, obstacles, door_input.source_width, door_input.source_height

    def run_cycle(self, image: np.ndarray, rotation_degrees: float = 0) -> CycleResult:
        """
        Run one full capture cycle and announce the result if warranted.

        Args:
            image: Captured BGR image.
            rotation_degrees: Clockwise rotation hint from the image source.

        Returns:
            CycleResult with a snapshot, or the error that aborted the cycle.
        """
        with self._lock:
            self.cycle_count += 1
            timer = StageTimer()

            try:
                doors, obstacles, width, height = self.detect(image, rotation_degrees, timer)
            except (InvalidImageError, InferenceError) as e:
                logger.warning(f"Cycle {self.cycle_count} aborted: {e}")
                return CycleResult(error=e)

            guidance = self.advisor.advise(doors, obstacles, width, height)
            announcement = self.debouncer.update(guidance.text)

            if announcement.should_speak and self.speech is not None:
                self.speech.speak(announcement.text, flush=True)
                logger.info(f"Guidance: '{announcement.text}' ({announcement.reason})")

            snapshot = GuidanceSnapshot(
                doors=tuple(doors),
                obstacles=tuple(obstacles),
                guidance=guidance,
                announcement=announcement,
                image_width=width,
                image_height=height
            )
            self.last_snapshot = snapshot

            logger.debug(
                f"Cycle {self.cycle_count}: {timer.summary()}, total={timer.total_ms:.1f}ms, "
                f"doors={len(doors)}, obstacles={len(obstacles)}"
            )

        if self.on_snapshot is not None:
            try:
                self.on_snapshot(snapshot)
            except Exception as e:
                logger.error(f"Snapshot callback failed: {e}")

        return CycleResult(snapshot=snapshot)

    def run_capture(self, source) -> CycleResult:
        """
        Capture one frame from a FrameSource and run a cycle on it.

        Args:
            source: FrameSource providing capture().

        Returns:
            CycleResult; capture failures are reported as InvalidImageError.
        """
        try:
            frame = source.capture()
        except InvalidImageError as e:
            logger.warning(f"Capture failed: {e}")
            return CycleResult(error=e)
        return self.run_cycle(frame.image, frame.rotation_degrees)

    def close(self) -> None:
        """Release engines."""
        for engine in (self.door_engine, self.obstacle_engine):
            close = getattr(engine, "close", None)
            if close is not None:
                close()
