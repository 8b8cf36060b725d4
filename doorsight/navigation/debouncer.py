"""Decide when a newly synthesized instruction should be spoken."""

import threading
from dataclasses import dataclass
from typing import Optional

from doorsight.utils.logger import get_logger
from doorsight.utils.timing import timestamp

logger = get_logger(__name__)

SIGNIFICANT_TERMS = ("left", "right", "straight", "forward", "stop", "turn", "obstacle", "door")
NO_DOOR_PHRASE = "no door"
INITIAL_GUIDANCE_TEXT = "Press Capture to detect doors and obstacles"


def is_significant_change(old_text: str, new_text: str) -> bool:
    """
    Whether switching from old_text to new_text changes what the user must do.

    True when any significant term (case-sensitive) appears in exactly one of
    the two texts, or when "no door" appears in exactly one of them.
    """
    for term in SIGNIFICANT_TERMS:
        if (term in old_text) != (term in new_text):
            return True
    return (NO_DOOR_PHRASE in old_text) != (NO_DOOR_PHRASE in new_text)


@dataclass
class GuidanceState:
    """Announcement history for one detection session."""
    last_spoken_text: str = ""
    last_spoken_direction: str = ""
    direction_stability_count: int = 0
    last_announcement_timestamp: Optional[float] = None


@dataclass(frozen=True)
class Announcement:
    """Outcome of one debounce decision."""
    text: str
    should_speak: bool
    reason: str


class AnnouncementDebouncer:
    """
    Suppresses repeated or insignificant instruction changes.

    A repeated instruction is spoken once it has been seen stability_count
    times in a row (or if the displayed text is out of sync). A changed
    instruction is spoken immediately only if the change is significant.
    The displayed text always follows the newest instruction.
    """

    def __init__(
        self,
        stability_count: int = 2,
        initial_text: str = INITIAL_GUIDANCE_TEXT
    ):
        """
        Initialize debouncer.

        Args:
            stability_count: Consecutive repeats needed to re-announce.
            initial_text: Displayed text before the first capture.
        """
        self.stability_count = stability_count
        self.state = GuidanceState()
        self._current_text = initial_text
        self._lock = threading.Lock()

    @property
    def current_text(self) -> str:
        """Guidance text currently shown to the user."""
        with self._lock:
            return self._current_text

    def update(self, new_text: str, now: Optional[float] = None) -> Announcement:
        """
        Record a new instruction and decide whether to speak it.

        Args:
            new_text: Freshly synthesized instruction.
            now: Timestamp in seconds (monotonic clock if None).

        Returns:
            Announcement with the speak decision.
        """
        if now is None:
            now = timestamp()

        with self._lock:
            state = self.state
            displayed = self._current_text

            if new_text == state.last_spoken_direction:
                state.direction_stability_count += 1
                if state.direction_stability_count >= self.stability_count:
                    should_speak, reason = True, "stable"
                elif displayed != new_text:
                    should_speak, reason = True, "resync"
                else:
                    should_speak, reason = False, "unstable"
            else:
                previous = state.last_spoken_direction
                state.last_spoken_direction = new_text
                state.direction_stability_count = 1
                if is_significant_change(previous, new_text):
                    should_speak, reason = True, "significant change"
                else:
                    should_speak, reason = False, "minor change"

            self._current_text = new_text

            if should_speak:
                state.last_spoken_text = new_text
                state.last_announcement_timestamp = now

            count = state.direction_stability_count

        logger.debug(f"Debounce '{new_text}': speak={should_speak} ({reason}, count={count})")
        return Announcement(text=new_text, should_speak=should_speak, reason=reason)
