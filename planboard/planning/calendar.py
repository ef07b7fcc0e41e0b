"""Week and month calendar grids built from a flat list of sessions."""
from __future__ import annotations

import calendar as _calendar
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Mapping

from .models import Session, parse_iso_date
from .timeslots import to_minutes


WEEK_VIEW = "week"
MONTH_VIEW = "month"
VIEW_MODES = (WEEK_VIEW, MONTH_VIEW)

WEEK_DAYS = 5
MONTH_CELLS = 42
WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


@dataclass
class CalendarBucket:
    date: str
    is_current_month: bool = True
    is_today: bool = False
    label: str = ""
    sessions: list[Session] = field(default_factory=list)

    @property
    def day(self) -> date:
        return date.fromisoformat(self.date)


def monday_of(value: date) -> date:
    """Return the Monday of the ISO week holding ``value`` (Sunday is day 7)."""

    if isinstance(value, datetime):
        value = value.date()
    return value - timedelta(days=value.isoweekday() - 1)


def first_of_month(value: date) -> date:
    if isinstance(value, datetime):
        value = value.date()
    return value.replace(day=1)


def shift_months(value: date, offset: int) -> date:
    """Move by whole months, always landing on the first day of the month."""

    index = value.year * 12 + (value.month - 1) + offset
    return date(index // 12, index % 12 + 1, 1)


def is_placeable(session: Session) -> bool:
    if session.is_deleted:
        return False
    if session.day is None:
        return False
    return to_minutes(session.hour_start) is not None and to_minutes(session.hour_end, end=True) is not None


def _as_session(entry: Session | Mapping[str, Any]) -> Session:
    if isinstance(entry, Session):
        return entry
    return Session.from_payload(entry)


def group_by_day(sessions: Iterable[Session | Mapping[str, Any]]) -> dict[date, list[Session]]:
    """Group placeable sessions by day, each day sorted by start time.

    The sort is stable so sessions sharing a start time keep their input order.
    """

    grouped: dict[date, list[Session]] = defaultdict(list)
    for entry in sessions:
        session = _as_session(entry)
        if not is_placeable(session):
            continue
        grouped[session.day].append(session)
    for day_sessions in grouped.values():
        day_sessions.sort(key=lambda session: to_minutes(session.hour_start))
    return grouped


def _bucket(day: date, grouped: Mapping[date, list[Session]], *, today: date | None, current_month: bool, label: str) -> CalendarBucket:
    return CalendarBucket(
        date=day.isoformat(),
        is_current_month=current_month,
        is_today=today is not None and day == today,
        label=label,
        sessions=list(grouped.get(day, [])),
    )


def day_label(day: date) -> str:
    return f"{WEEKDAY_NAMES[day.weekday()]} {day.day} {day.strftime('%b')}"


def week_buckets(
    anchor: date,
    sessions: Iterable[Session | Mapping[str, Any]],
    *,
    today: date | None = None,
) -> list[CalendarBucket]:
    """Monday to Friday buckets for the week containing ``anchor``."""

    start = monday_of(anchor)
    grouped = group_by_day(sessions)
    return [
        _bucket(day, grouped, today=today, current_month=True, label=day_label(day))
        for day in (start + timedelta(days=offset) for offset in range(WEEK_DAYS))
    ]


def month_buckets(
    anchor: date,
    sessions: Iterable[Session | Mapping[str, Any]],
    *,
    today: date | None = None,
) -> list[CalendarBucket]:
    """Six full Monday-first rows covering the month containing ``anchor``.

    Leading days of the previous month and trailing days of the next month are
    flagged ``is_current_month=False`` but still receive their sessions.
    """

    first = first_of_month(anchor)
    start = first - timedelta(days=first.weekday())
    grouped = group_by_day(sessions)
    buckets: list[CalendarBucket] = []
    for offset in range(MONTH_CELLS):
        day = start + timedelta(days=offset)
        buckets.append(
            _bucket(
                day,
                grouped,
                today=today,
                current_month=(day.year, day.month) == (first.year, first.month),
                label=str(day.day),
            )
        )
    return buckets


def week_range_label(week_start: date) -> str:
    start = monday_of(week_start)
    end = start + timedelta(days=WEEK_DAYS - 1)
    return f"{start.day} {start.strftime('%b')} – {end.day} {end.strftime('%b')} {end.year}"


def month_label(month_start: date) -> str:
    return f"{_calendar.month_name[month_start.month]} {month_start.year}"


class CalendarNavigator:
    """Anchor dates driving the week and month views."""

    def __init__(self, reference: date, view_mode: str = WEEK_VIEW) -> None:
        if view_mode not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {view_mode}")
        self.view_mode = view_mode
        self.week_start = monday_of(reference)
        self.month_start = first_of_month(reference)

    @property
    def anchor(self) -> date:
        return self.week_start if self.view_mode == WEEK_VIEW else self.month_start

    def set_view_mode(self, view_mode: str) -> None:
        if view_mode not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {view_mode}")
        self.view_mode = view_mode

    def next_week(self) -> None:
        self.week_start = monday_of(self.week_start + timedelta(days=7))

    def prev_week(self) -> None:
        self.week_start = monday_of(self.week_start - timedelta(days=7))

    def next_month(self) -> None:
        self.month_start = shift_months(self.month_start, 1)

    def prev_month(self) -> None:
        self.month_start = shift_months(self.month_start, -1)

    def next(self) -> None:
        if self.view_mode == WEEK_VIEW:
            self.next_week()
        else:
            self.next_month()

    def previous(self) -> None:
        if self.view_mode == WEEK_VIEW:
            self.prev_week()
        else:
            self.prev_month()

    def jump_to(self, iso_date: str | None) -> bool:
        target = parse_iso_date(iso_date)
        if target is None:
            return False
        self.week_start = monday_of(target)
        self.month_start = first_of_month(target)
        return True

    def today(self, today: date | None = None) -> None:
        current = today or date.today()
        self.week_start = monday_of(current)
        self.month_start = first_of_month(current)
