"""Tests for the continuous guidance scheduler."""

from __future__ import annotations

import threading
import time

from doorsight.navigation.scheduler import (
    DISABLED_MESSAGE,
    ENABLED_MESSAGE,
    ContinuousScanScheduler,
    ScanState,
)


class _RecordingSpeech:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def speak(self, message: str, flush: bool = True) -> bool:
        self.messages.append(message)
        return True


class _Counter:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


def _scheduler(run_once=None, speech=None, cooldown_ms: int = 3000) -> ContinuousScanScheduler:
    return ContinuousScanScheduler(
        run_once=run_once or _Counter(),
        speech=speech,
        poll_interval_s=1.0,
        cooldown_ms=cooldown_ms,
        clock=lambda: 0,
    )


def test_idle_scheduler_never_fires() -> None:
    run = _Counter()
    scheduler = _scheduler(run)

    assert scheduler.state == ScanState.IDLE
    assert not scheduler.tick(now_ms=10_000)
    assert run.calls == 0


def test_enable_and_disable_are_confirmed_aloud() -> None:
    speech = _RecordingSpeech()
    scheduler = _scheduler(speech=speech)

    scheduler.enable(start_thread=False)
    scheduler.enable(start_thread=False)
    scheduler.disable()
    scheduler.disable()

    assert speech.messages == [ENABLED_MESSAGE, DISABLED_MESSAGE]


def test_runs_respect_cooldown() -> None:
    run = _Counter()
    scheduler = _scheduler(run)
    scheduler.enable(start_thread=False)

    fired = [scheduler.tick(now_ms=t) for t in (0, 1000, 2000, 2999, 3000, 4000, 6000)]

    assert fired == [True, False, False, False, True, False, True]
    assert run.calls == 3
    assert scheduler.runs == 3


def test_disable_stops_further_runs() -> None:
    run = _Counter()
    scheduler = _scheduler(run)
    scheduler.enable(start_thread=False)
    scheduler.tick(now_ms=0)

    scheduler.disable()

    assert not scheduler.tick(now_ms=10_000)
    assert run.calls == 1


def test_failing_run_does_not_stop_scanning() -> None:
    def explode() -> None:
        raise RuntimeError("camera unplugged")

    scheduler = _scheduler(explode)
    scheduler.enable(start_thread=False)

    assert scheduler.tick(now_ms=0)
    assert not scheduler.tick(now_ms=1000)
    assert scheduler.tick(now_ms=3000)
    assert scheduler.is_scanning


def test_manual_capture_restarts_cooldown() -> None:
    run = _Counter()
    scheduler = _scheduler(run)
    scheduler.enable(start_thread=False)

    scheduler.mark_completed(now_ms=5000)

    assert not scheduler.tick(now_ms=7000)
    assert scheduler.tick(now_ms=8000)


def test_toggle_flips_state() -> None:
    scheduler = _scheduler()

    assert scheduler.toggle() == ScanState.SCANNING
    assert scheduler.toggle() == ScanState.IDLE
    scheduler.stop(timeout=2.0)


def test_reenable_during_run_waits_for_cooldown() -> None:
    started = threading.Event()
    release = threading.Event()
    calls = _Counter()

    def slow_run() -> None:
        calls()
        started.set()
        release.wait(timeout=2.0)

    scheduler = ContinuousScanScheduler(
        run_once=slow_run,
        poll_interval_s=0.01,
        cooldown_ms=3000,
        clock=lambda: 0,
    )
    scheduler.enable()
    try:
        assert started.wait(timeout=2.0)
        scheduler.disable()
        scheduler.enable()
        time.sleep(0.1)
        release.set()
        time.sleep(0.2)
    finally:
        scheduler.stop(timeout=2.0)

    assert calls.calls == 1
    assert scheduler.runs == 1


def test_worker_thread_runs_cycles() -> None:
    fired = threading.Event()
    scheduler = ContinuousScanScheduler(run_once=fired.set, poll_interval_s=0.05, cooldown_ms=0)

    scheduler.enable()
    try:
        assert fired.wait(timeout=2.0)
    finally:
        scheduler.stop(timeout=2.0)

    assert scheduler.state == ScanState.IDLE
    assert scheduler.runs >= 1
