"""Selectable time granularity and interval validation for sessions."""
from __future__ import annotations

from datetime import time
from typing import Sequence

from .errors import InvalidInterval


FIRST_HOUR = 6
SLOT_MINUTES = 15
MIDNIGHT = "00:00"
END_OF_DAY_MINUTES = 24 * 60

START_REQUIRED = "Start time is required"
END_REQUIRED = "End time is required"
END_BEFORE_START = "End must be after start"
INVALID_TIME = "Invalid time"


def generate_time_options() -> list[str]:
    """Return ``06:00`` to ``23:45`` in 15 minute steps, then ``00:00``.

    The trailing midnight value stands for the end of the day and is shared by
    the start and end selectors.
    """

    options: list[str] = []
    for hour in range(FIRST_HOUR, 24):
        for minute in range(0, 60, SLOT_MINUTES):
            value = f"{hour:02d}:{minute:02d}"
            if value not in options:
                options.append(value)
    if MIDNIGHT not in options:
        options.append(MIDNIGHT)
    return options


TIME_OPTIONS: tuple[str, ...] = tuple(generate_time_options())


def normalize(value: str | time | None) -> str:
    """Drop the seconds component, returning ``HH:mm``."""

    if value is None:
        return ""
    if isinstance(value, time):
        return value.strftime("%H:%M")
    text = str(value).strip()
    if not text:
        return ""
    return ":".join(text.split(":")[:2])


def to_minutes(value: str | time | None, *, end: bool = False) -> int | None:
    """Encode a time of day as minutes since midnight.

    With ``end=True`` midnight is read as the end of the day (1440) so that it
    compares after every start time. Unparseable values yield ``None``.
    """

    text = normalize(value)
    parts = text.split(":")
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        return None
    hours, minutes = int(parts[0]), int(parts[1])
    if hours > 23 or minutes > 59:
        return None
    total = hours * 60 + minutes
    if end and total == 0:
        return END_OF_DAY_MINUTES
    return total


def interval_error(start: str | None, end: str | None) -> InvalidInterval | None:
    if not normalize(start):
        return InvalidInterval("hour_start", START_REQUIRED)
    if not normalize(end):
        return InvalidInterval("hour_end", END_REQUIRED)
    start_minutes = to_minutes(start)
    if start_minutes is None:
        return InvalidInterval("hour_start", INVALID_TIME)
    end_minutes = to_minutes(end, end=True)
    if end_minutes is None:
        return InvalidInterval("hour_end", INVALID_TIME)
    if start_minutes >= end_minutes:
        return InvalidInterval("hour_end", END_BEFORE_START)
    return None


def validate_interval(start: str | None, end: str | None) -> None:
    """Raise :class:`InvalidInterval` unless ``start < end``."""

    error = interval_error(start, end)
    if error is not None:
        raise error


def end_time_options(start: str | None, options: Sequence[str] = TIME_OPTIONS) -> list[str]:
    start_minutes = to_minutes(start)
    if start_minutes is None:
        return list(options)
    return [
        option
        for option in options
        if (to_minutes(option, end=True) or 0) > start_minutes
    ]


def reconcile_end(start: str | None, end: str | None) -> str:
    """Return ``end`` when it is still offered after ``start``, else ``""``."""

    current = normalize(end)
    end_minutes = to_minutes(current, end=True)
    if end_minutes is None:
        return ""
    start_minutes = to_minutes(start)
    if start_minutes is None or end_minutes > start_minutes:
        return current
    return ""
