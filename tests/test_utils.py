"""Tests for timing and logging helpers."""

from __future__ import annotations

import logging

from doorsight.config.settings import LoggingConfig
from doorsight.utils.logger import ColoredFormatter, configure_logging, setup_logger
from doorsight.utils.timing import Cooldown, StageTimer


def test_cooldown_is_ready_before_first_mark() -> None:
    cooldown = Cooldown(3000)

    assert cooldown.ready(0)
    assert cooldown.remaining(0) == 0


def test_cooldown_elapses() -> None:
    cooldown = Cooldown(3000)
    cooldown.mark(1000)

    assert not cooldown.ready(3999)
    assert cooldown.remaining(3000) == 1000
    assert cooldown.ready(4000)

    cooldown.reset()
    assert cooldown.ready(1001)


def test_stage_timer_records_each_stage() -> None:
    timer = StageTimer()

    with timer.stage("normalize"):
        pass
    with timer.stage("door_infer"):
        pass

    assert list(timer.durations_ms) == ["normalize", "door_infer"]
    assert timer.total_ms >= 0.0
    assert timer.summary().startswith("normalize=")


def test_setup_logger_is_idempotent() -> None:
    logger = setup_logger("doorsight.test_idempotent", level="INFO", use_colors=False)
    again = setup_logger("doorsight.test_idempotent", level="DEBUG", use_colors=False)

    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert not logger.propagate


def test_configure_logging_uses_package_root() -> None:
    logger = configure_logging(LoggingConfig(level="warning", console_colors=False))

    assert logger.name == "doorsight"
    assert logger.level == logging.WARNING


def test_colored_formatter_leaves_record_untouched() -> None:
    formatter = ColoredFormatter("%(levelname)s %(message)s", use_colors=True)
    record = logging.LogRecord("doorsight", logging.WARNING, __file__, 1, "careful", None, None)

    line = formatter.format(record)

    assert "careful" in line
    assert record.levelname == "WARNING"
    assert record.msg == "careful"
