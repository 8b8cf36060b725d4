"""Tests for the announcement debouncer."""

from __future__ import annotations

import pytest

from doorsight.navigation.debouncer import (
    INITIAL_GUIDANCE_TEXT,
    AnnouncementDebouncer,
    is_significant_change,
)
from doorsight.navigation.guidance import (
    DOOR_AHEAD_MESSAGE,
    DOOR_LEFT_MESSAGE,
    DOOR_RIGHT_MESSAGE,
    NO_DOOR_MESSAGE,
    OBSTACLE_MESSAGE,
)


@pytest.mark.parametrize(
    "old, new",
    [
        (DOOR_LEFT_MESSAGE, DOOR_RIGHT_MESSAGE),
        (DOOR_LEFT_MESSAGE, DOOR_AHEAD_MESSAGE),
        (OBSTACLE_MESSAGE, NO_DOOR_MESSAGE),
        (NO_DOOR_MESSAGE, DOOR_LEFT_MESSAGE),
        ("", DOOR_LEFT_MESSAGE),
    ],
)
def test_direction_changes_are_significant(old: str, new: str) -> None:
    assert is_significant_change(old, new)
    assert is_significant_change(new, old)


@pytest.mark.parametrize(
    "old, new",
    [
        (DOOR_LEFT_MESSAGE, DOOR_LEFT_MESSAGE),
        ("Door detected on the left (0.91)", "Door detected on the left (0.85)"),
        ("Stop!", "Halt!"),
        ("", ""),
    ],
)
def test_wording_changes_are_not_significant(old: str, new: str) -> None:
    assert not is_significant_change(old, new)


def test_terms_are_case_sensitive() -> None:
    # Only the lower-case "stop" and "door" count
    assert not is_significant_change("Stop", "Door")


def test_initial_state() -> None:
    debouncer = AnnouncementDebouncer()

    assert debouncer.current_text == INITIAL_GUIDANCE_TEXT
    assert debouncer.state.last_spoken_text == ""
    assert debouncer.state.direction_stability_count == 0
    assert debouncer.state.last_announcement_timestamp is None


def test_first_instruction_is_spoken() -> None:
    debouncer = AnnouncementDebouncer()

    announcement = debouncer.update(DOOR_LEFT_MESSAGE, now=10.0)

    assert announcement.should_speak
    assert announcement.reason == "significant change"
    assert debouncer.current_text == DOOR_LEFT_MESSAGE
    assert debouncer.state.last_spoken_text == DOOR_LEFT_MESSAGE
    assert debouncer.state.last_announcement_timestamp == 10.0


def test_repeat_is_spoken_once_stable() -> None:
    debouncer = AnnouncementDebouncer()
    debouncer.update(DOOR_LEFT_MESSAGE)

    announcement = debouncer.update(DOOR_LEFT_MESSAGE)

    assert announcement.should_speak
    assert announcement.reason == "stable"
    assert debouncer.state.direction_stability_count == 2


def test_minor_change_updates_display_silently() -> None:
    debouncer = AnnouncementDebouncer()
    debouncer.update("Door detected on the left.", now=1.0)

    announcement = debouncer.update("Door detected on the left!", now=2.0)

    assert not announcement.should_speak
    assert announcement.reason == "minor change"
    assert debouncer.current_text == "Door detected on the left!"
    assert debouncer.state.last_spoken_text == "Door detected on the left."
    assert debouncer.state.last_announcement_timestamp == 1.0
    assert debouncer.state.direction_stability_count == 1

    assert debouncer.update("Door detected on the left!", now=3.0).should_speak


def test_direction_flip_resets_stability() -> None:
    debouncer = AnnouncementDebouncer()
    debouncer.update(DOOR_LEFT_MESSAGE)
    debouncer.update(DOOR_LEFT_MESSAGE)

    announcement = debouncer.update(DOOR_RIGHT_MESSAGE)

    assert announcement.should_speak
    assert debouncer.state.direction_stability_count == 1
    assert debouncer.state.last_spoken_direction == DOOR_RIGHT_MESSAGE


def test_higher_stability_count_holds_repeats_back() -> None:
    debouncer = AnnouncementDebouncer(stability_count=3)
    debouncer.update(DOOR_AHEAD_MESSAGE)

    second = debouncer.update(DOOR_AHEAD_MESSAGE)
    third = debouncer.update(DOOR_AHEAD_MESSAGE)

    assert not second.should_speak
    assert second.reason == "unstable"
    assert third.should_speak
