"""Continuous guidance: re-run the pipeline on a cooldown while enabled."""

import threading
from enum import Enum
from typing import Callable, Optional

from doorsight.utils.logger import get_logger
from doorsight.utils.timing import Cooldown, timestamp_ms
from .tts_output import SpeechOutput

logger = get_logger(__name__)

ENABLED_MESSAGE = "Continuous guidance enabled"
DISABLED_MESSAGE = "Continuous guidance disabled"


class ScanState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"


class ContinuousScanScheduler:
    """
    Periodic check-and-fire loop for continuous guidance.

    While scanning, a worker thread wakes every poll interval and triggers
    one pipeline run once cooldown_ms has passed since the previous run
    completed. Runs execute on the worker thread one at a time; disabling
    stops new runs but lets an in-flight run finish.
    """

    def __init__(
        self,
        run_once: Callable[[], object],
        speech: Optional[SpeechOutput] = None,
        poll_interval_s: float = 1.0,
        cooldown_ms: int = 3000,
        clock: Callable[[], int] = timestamp_ms
    ):
        """
        Initialize scheduler.

        Args:
            run_once: Runs one capture cycle (e.g., a bound run_capture).
            speech: Speech output for enable/disable confirmations.
            poll_interval_s: Seconds between cooldown checks.
            cooldown_ms: Minimum milliseconds between runs.
            clock: Millisecond clock, injectable for tests.
        """
        self.run_once = run_once
        self.speech = speech
        self.poll_interval_s = poll_interval_s
        self.cooldown = Cooldown(cooldown_ms)
        self._clock = clock

        self.state = ScanState.IDLE
        self.runs = 0
        self._state_lock = threading.Lock()
        self._run_lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_scanning(self) -> bool:
        return self.state == ScanState.SCANNING

    def _confirm(self, message: str) -> None:
        if self.speech is not None:
            self.speech.speak(message, flush=True)

    def enable(self, start_thread: bool = True) -> None:
        """
        Switch to scanning and start the worker thread.

        Args:
            start_thread: Start the polling thread (tests drive tick() directly).
        """
        with self._state_lock:
            if self.state == ScanState.SCANNING:
                return
            self.state = ScanState.SCANNING
            if start_thread:
                self._stop_event = threading.Event()
                self._thread = threading.Thread(
                    target=self._loop,
                    args=(self._stop_event,),
                    name="doorsight-scan",
                    daemon=True
                )
                self._thread.start()

        logger.info("Continuous guidance enabled")
        self._confirm(ENABLED_MESSAGE)

    def disable(self) -> None:
        """Switch to idle; an in-flight run is allowed to complete."""
        with self._state_lock:
            if self.state == ScanState.IDLE:
                return
            self.state = ScanState.IDLE
            if self._stop_event is not None:
                self._stop_event.set()

        logger.info("Continuous guidance disabled")
        self._confirm(DISABLED_MESSAGE)

    def toggle(self) -> ScanState:
        """Flip between idle and scanning, returning the new state."""
        if self.is_scanning:
            self.disable()
        else:
            self.enable()
        return self.state

    def mark_completed(self, now_ms: Optional[int] = None) -> None:
        """Restart the cooldown, e.g., after a manual capture."""
        self.cooldown.mark(self._clock() if now_ms is None else now_ms)

    def tick(self, now_ms: Optional[int] = None) -> bool:
        """
        Fire one run if scanning and the cooldown has elapsed.

        Args:
            now_ms: Current time in milliseconds (clock() if None).

        Returns:
            True if a run was triggered.
        """
        if not self.is_scanning:
            return False

        now = self._clock() if now_ms is None else now_ms
        if not self.cooldown.ready(now):
            return False

        with self._run_lock:
            # A run from a previous worker may have finished while we waited
            now = self._clock() if now_ms is None else now_ms
            if not self.is_scanning or not self.cooldown.ready(now):
                return False

            self.runs += 1
            try:
                self.run_once()
            except Exception as e:
                logger.error(f"Scheduled guidance run failed: {e}")
            finally:
                self.cooldown.mark(self._clock() if now_ms is None else now_ms)
        return True

    def _loop(self, stop_event: threading.Event) -> None:
        logger.debug("Scan loop started")
        while not stop_event.is_set():
            self.tick()
            stop_event.wait(self.poll_interval_s)
        logger.debug("Scan loop stopped")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Disable silently and wait for the worker thread to exit."""
        with self._state_lock:
            self.state = ScanState.IDLE
            if self._stop_event is not None:
                self._stop_event.set()
            thread = self._thread
            self._thread = None

        if thread is not None and thread.is_alive():
            thread.join(timeout)
