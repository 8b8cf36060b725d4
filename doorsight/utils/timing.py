"""Cooldown and stage timing utilities."""

import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional


def timestamp() -> float:
    """
    Get current timestamp using monotonic clock.

    Returns:
        Timestamp in seconds.
    """
    return time.monotonic()


def timestamp_ms() -> int:
    """
    Get current timestamp in milliseconds using monotonic clock.

    Returns:
        Timestamp in milliseconds.
    """
    return int(time.monotonic() * 1000)


class Cooldown:
    """Tracks whether enough time has passed since the last marked event."""

    def __init__(self, cooldown_ms: int):
        """
        Initialize cooldown.

        Args:
            cooldown_ms: Minimum milliseconds between events.
        """
        self.cooldown_ms = cooldown_ms
        self.last_ms: Optional[int] = None

    def ready(self, now_ms: int) -> bool:
        """
        Check whether the cooldown has elapsed.

        Args:
            now_ms: Current time in milliseconds.

        Returns:
            True if no event was marked yet or the cooldown has elapsed.
        """
        if self.last_ms is None:
            return True
        return now_ms - self.last_ms >= self.cooldown_ms

    def mark(self, now_ms: int) -> None:
        """Record an event at now_ms."""
        self.last_ms = now_ms

    def remaining(self, now_ms: int) -> int:
        """Milliseconds left before ready() becomes true (0 if ready)."""
        if self.last_ms is None:
            return 0
        return max(0, self.cooldown_ms - (now_ms - self.last_ms))

    def reset(self) -> None:
        """Forget the last event."""
        self.last_ms = None


class StageTimer:
    """Collects wall-clock durations of named pipeline stages."""

    def __init__(self):
        self.durations_ms: Dict[str, float] = {}

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Time the enclosed block and store it under name."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.durations_ms[name] = (time.perf_counter() - start) * 1000

    @property
    def total_ms(self) -> float:
        return sum(self.durations_ms.values())

    def summary(self) -> str:
        """Format durations like 'normalize=1.2ms, infer=30.5ms'."""
        return ", ".join(f"{name}={ms:.1f}ms" for name, ms in self.durations_ms.items())
