"""Display helpers shared by the week and month renderers and the selects."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

from .models import STATUS_ACTIVE, STATUS_DELETED, STATUS_LABELS, Session, SessionType
from .timeslots import normalize, to_minutes


TONE_PAST = "past"
TONE_TODAY = "today"
TONE_FUTURE = "future"


def _embedded(session: Session, key: str) -> Mapping[str, Any]:
    value = session.raw.get(key)
    return value if isinstance(value, Mapping) else {}


def teacher_name(session: Session) -> str:
    teacher = _embedded(session, "teacher")
    full = f"{teacher.get('first_name') or ''} {teacher.get('last_name') or ''}".strip()
    return full or f"Teacher #{session.teacher_id}"


def session_type_title(session: Session) -> str:
    session_type = _embedded(session, "planningSessionType")
    return session_type.get("title") or f"Type #{session.planning_session_type_id}"


def session_type_meta(session: Session) -> str:
    session_type = _embedded(session, "planningSessionType")
    parts: list[str] = []
    if session_type.get("type"):
        parts.append(str(session_type["type"]))
    if session_type.get("coefficient") is not None:
        parts.append(f"Coef {session_type['coefficient']}")
    return " • ".join(parts)


def time_range(session: Session) -> str:
    return f"{normalize(session.hour_start)} - {normalize(session.hour_end)}"


def status_label(status: int | None) -> str:
    if status in STATUS_LABELS:
        return STATUS_LABELS[status]
    return STATUS_LABELS[STATUS_ACTIVE]


def entry_tone(session: Session, now: datetime) -> str:
    """Classify a session as running now, upcoming or finished."""

    day = session.day
    start = to_minutes(session.hour_start)
    end = to_minutes(session.hour_end or session.hour_start, end=True)
    if day is None or start is None or end is None:
        return TONE_FUTURE
    if now.date() != day:
        return TONE_FUTURE if now.date() < day else TONE_PAST
    current = now.hour * 60 + now.minute
    if start <= current <= end:
        return TONE_TODAY
    if current < start:
        return TONE_FUTURE
    return TONE_PAST


def map_options(records: Iterable[Mapping[str, Any]], label_key: str = "title", fallback: str = "#") -> list[dict[str, Any]]:
    """Turn catalog records into select options, skipping deleted ones."""

    options = []
    for record in records:
        if record.get("status") == STATUS_DELETED:
            continue
        label = record.get(label_key) or f"{fallback}{record.get('id')}"
        options.append({"value": record.get("id"), "label": label})
    return options


def teacher_options(records: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    options = []
    for record in records:
        if record.get("status") == STATUS_DELETED:
            continue
        label = f"{record.get('first_name') or ''} {record.get('last_name') or ''}".strip()
        options.append(
            {
                "value": record.get("id"),
                "label": label or record.get("email") or f"Teacher #{record.get('id')}",
            }
        )
    return options


def session_type_options(types: Iterable[SessionType]) -> list[dict[str, Any]]:
    options = []
    for session_type in types:
        if not session_type.is_active:
            continue
        if session_type.type:
            label = f"{session_type.title} ({session_type.type})"
        else:
            label = session_type.title or f"Type #{session_type.id}"
        options.append({"value": session_type.id, "label": label})
    return options


def period_label(session: Session, labels: Mapping[str, str]) -> str:
    return labels.get(session.period, session.period)
