"""Editable session form: defaults, validation and outbound payload."""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date
from typing import Any

from .models import DEFAULT_SESSION_STATUS, Session, parse_iso_date
from .timeslots import interval_error, normalize


DEFAULT_START = "06:00"
DEFAULT_END = "07:00"

ID_FIELDS: tuple[str, ...] = (
    "school_year_id",
    "class_id",
    "specialization_id",
    "teacher_id",
    "class_room_id",
    "planning_session_type_id",
    "course_id",
)

REQUIRED_MESSAGES: dict[str, str] = {
    "school_year_id": "School year is required",
    "period": "Period is required",
    "date_day": "Date is required",
    "hour_start": "Start time is required",
    "hour_end": "End time is required",
    "class_id": "Class is required",
    "specialization_id": "Specialization is required",
    "teacher_id": "Teacher is required",
    "class_room_id": "Classroom is required",
    "planning_session_type_id": "Session type is required",
    "course_id": "Course is required",
}


@dataclass
class FormState:
    school_year_id: int | None = None
    period: str = ""
    date_day: str = ""
    hour_start: str = DEFAULT_START
    hour_end: str = DEFAULT_END
    class_id: int | None = None
    specialization_id: int | None = None
    teacher_id: int | None = None
    class_room_id: int | None = None
    planning_session_type_id: int | None = None
    course_id: int | None = None
    status: int = DEFAULT_SESSION_STATUS
    errors: dict[str, str] = field(default_factory=dict)

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(item.name for item in fields(cls) if item.name != "errors")

    def values(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.field_names()}

    def as_dict(self) -> dict[str, Any]:
        data = self.values()
        data["errors"] = {name: message for name, message in self.errors.items() if message}
        return data


def initial_form(week_start: date) -> FormState:
    return FormState(date_day=week_start.isoformat())


def form_from_session(session: Session) -> FormState:
    """Load an existing session into the form for editing."""

    return FormState(
        school_year_id=session.school_year_id,
        period=session.period or "",
        date_day=session.date_day,
        hour_start=normalize(session.hour_start),
        hour_end=normalize(session.hour_end),
        class_id=session.class_id,
        specialization_id=session.specialization_id,
        teacher_id=session.teacher_id,
        class_room_id=session.class_room_id,
        planning_session_type_id=session.planning_session_type_id,
        course_id=session.course_id,
        status=session.status if session.status is not None else DEFAULT_SESSION_STATUS,
    )


def validate_form(form: FormState) -> dict[str, str]:
    """Return ``{field: message}`` for every problem found in ``form``."""

    errors: dict[str, str] = {}
    for name in ID_FIELDS:
        if getattr(form, name) is None:
            errors[name] = REQUIRED_MESSAGES[name]
    if not form.period.strip():
        errors["period"] = REQUIRED_MESSAGES["period"]
    if not form.date_day:
        errors["date_day"] = REQUIRED_MESSAGES["date_day"]
    elif parse_iso_date(form.date_day) is None:
        errors["date_day"] = "Invalid date"
    interval = interval_error(form.hour_start, form.hour_end)
    if interval is not None:
        errors[interval.field] = interval.message
    return {name: errors[name] for name in REQUIRED_MESSAGES if name in errors}


def build_payload(form: FormState) -> dict[str, Any]:
    return {
        "period": form.period.strip(),
        "date_day": form.date_day,
        "hour_start": normalize(form.hour_start),
        "hour_end": normalize(form.hour_end),
        "teacher_id": int(form.teacher_id),
        "specialization_id": int(form.specialization_id),
        "class_id": int(form.class_id),
        "class_room_id": int(form.class_room_id),
        "planning_session_type_id": int(form.planning_session_type_id),
        "course_id": int(form.course_id),
        "school_year_id": int(form.school_year_id) if form.school_year_id is not None else None,
        "status": form.status,
    }
