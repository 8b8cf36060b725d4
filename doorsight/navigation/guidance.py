"""Turn door and obstacle detections into a spoken navigation instruction."""

from dataclasses import dataclass
from typing import Optional, Sequence

from doorsight.detection.types import Detection
from doorsight.utils.logger import get_logger

logger = get_logger(__name__)

OBSTACLE_MESSAGE = "Stop! Obstacle detected in front of you."
NO_DOOR_MESSAGE = "No doors detected. Turn around slowly to scan the room."
DOOR_LEFT_MESSAGE = "Door detected on the left."
DOOR_RIGHT_MESSAGE = "Door detected on the right."
DOOR_AHEAD_MESSAGE = "Door detected straight ahead."


@dataclass(frozen=True)
class Guidance:
    """A synthesized instruction and the detection it was derived from."""
    text: str
    direction: str  # "stop", "scan", "left", "center", "right"
    target: Optional[Detection] = None
    normalized_x: Optional[float] = None


class GuidanceAdvisor:
    """
    Chooses one instruction for the current detections.

    Obstacles take absolute priority over doors. Otherwise the most
    confident door is classified into a left, center or right zone by the
    horizontal position of its box center.
    """

    def __init__(
        self,
        min_confidence: float = 0.5,
        left_threshold: float = 1.0 / 3.0,
        right_threshold: float = 2.0 / 3.0
    ):
        """
        Initialize guidance advisor.

        Args:
            min_confidence: Detections below this confidence are ignored.
            left_threshold: Normalized x below which a door is "left".
            right_threshold: Normalized x above which a door is "right".
        """
        self.min_confidence = min_confidence
        self.left_threshold = left_threshold
        self.right_threshold = right_threshold

    def advise(
        self,
        doors: Sequence[Detection],
        obstacles: Sequence[Detection],
        image_width: int,
        image_height: int
    ) -> Guidance:
        """
        Synthesize guidance for one capture.

        Args:
            doors: Suppressed door detections.
            obstacles: Suppressed obstacle detections.
            image_width: Source image width in pixels.
            image_height: Source image height in pixels.

        Returns:
            Guidance for the capture. The same inputs always give the same result.
        """
        confident_doors = [d for d in doors if d.confidence >= self.min_confidence]
        confident_obstacles = [o for o in obstacles if o.confidence >= self.min_confidence]

        if confident_obstacles:
            logger.debug(f"Obstacle detected: {len(confident_obstacles)} obstacles found")
            return Guidance(text=OBSTACLE_MESSAGE, direction="stop", target=confident_obstacles[0])

        if not confident_doors:
            return Guidance(text=NO_DOOR_MESSAGE, direction="scan")

        # max() keeps the first door on ties
        door = max(confident_doors, key=lambda d: d.confidence)
        center_x, _ = door.center
        normalized_x = center_x / image_width

        if normalized_x < self.left_threshold:
            text, direction = DOOR_LEFT_MESSAGE, "left"
        elif normalized_x > self.right_threshold:
            text, direction = DOOR_RIGHT_MESSAGE, "right"
        else:
            text, direction = DOOR_AHEAD_MESSAGE, "center"

        logger.debug(
            f"Door center x={normalized_x:.3f} (image {image_width}x{image_height}, "
            f"bbox={door.bbox}, conf={door.confidence:.2f}) -> {direction}"
        )
        return Guidance(text=text, direction=direction, target=door, normalized_x=normalized_x)


def synthesize_guidance(
    doors: Sequence[Detection],
    obstacles: Sequence[Detection],
    image_width: int,
    image_height: int,
    min_confidence: float = 0.5
) -> str:
    """Instruction text for the given detections with default zone thresholds."""
    advisor = GuidanceAdvisor(min_confidence=min_confidence)
    return advisor.advise(doors, obstacles, image_width, image_height).text
