"""Value objects exchanged between the planning core and the remote backend."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping


STATUS_DELETED = -2
STATUS_ARCHIVED = -1
STATUS_DISABLED = 0
STATUS_ACTIVE = 1
STATUS_PENDING = 2

DEFAULT_SESSION_STATUS = STATUS_ACTIVE

STATUS_LABELS: dict[int, str] = {
    STATUS_DELETED: "Deleted",
    STATUS_ARCHIVED: "Archived",
    STATUS_DISABLED: "Disabled",
    STATUS_ACTIVE: "Active",
    STATUS_PENDING: "Pending",
}

# Statuses offered in the session form and the filter bar.
FORM_STATUSES: tuple[int, ...] = (
    STATUS_DISABLED,
    STATUS_ACTIVE,
    STATUS_PENDING,
    STATUS_ARCHIVED,
)

SESSION_TYPE_ACTIVE = "active"
SESSION_TYPE_INACTIVE = "inactive"

DATE_FORMAT = "%Y-%m-%d"


def parse_iso_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip()[:10], DATE_FORMAT).date()
    except ValueError:
        return None


def coerce_id(value: Any) -> int | None:
    """Return a positive integer id, or ``None`` for empty/invalid values."""

    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def coerce_status(value: Any) -> int | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class Session:
    """A scheduled teaching slot as returned by the remote backend."""

    id: int | None
    period: str
    date_day: str
    hour_start: str
    hour_end: str
    status: int | None = DEFAULT_SESSION_STATUS
    teacher_id: int | None = None
    specialization_id: int | None = None
    class_id: int | None = None
    class_room_id: int | None = None
    planning_session_type_id: int | None = None
    course_id: int | None = None
    school_year_id: int | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Session":
        period = payload.get("period")
        return cls(
            id=coerce_id(payload.get("id")),
            period="" if period is None else str(period),
            date_day=str(payload.get("date_day") or ""),
            hour_start=str(payload.get("hour_start") or ""),
            hour_end=str(payload.get("hour_end") or ""),
            status=coerce_status(payload.get("status")),
            teacher_id=coerce_id(payload.get("teacher_id")),
            specialization_id=coerce_id(payload.get("specialization_id")),
            class_id=coerce_id(payload.get("class_id")),
            class_room_id=coerce_id(payload.get("class_room_id")),
            planning_session_type_id=coerce_id(payload.get("planning_session_type_id")),
            course_id=coerce_id(payload.get("course_id")),
            school_year_id=coerce_id(payload.get("school_year_id")),
            raw=dict(payload),
        )

    @property
    def is_deleted(self) -> bool:
        return self.status == STATUS_DELETED

    @property
    def day(self) -> date | None:
        return parse_iso_date(self.date_day)

    def as_dict(self) -> dict[str, Any]:
        data = dict(self.raw)
        data.update(
            {
                "id": self.id,
                "period": self.period,
                "date_day": self.date_day,
                "hour_start": self.hour_start,
                "hour_end": self.hour_end,
                "status": self.status,
                "teacher_id": self.teacher_id,
                "specialization_id": self.specialization_id,
                "class_id": self.class_id,
                "class_room_id": self.class_room_id,
                "planning_session_type_id": self.planning_session_type_id,
                "course_id": self.course_id,
                "school_year_id": self.school_year_id,
            }
        )
        return data


@dataclass
class SessionType:
    id: int
    title: str
    type: str
    coefficient: float | None = None
    status: str = SESSION_TYPE_ACTIVE

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "SessionType":
        coefficient = payload.get("coefficient")
        try:
            coefficient = float(coefficient) if coefficient is not None else None
        except (TypeError, ValueError):
            coefficient = None
        return cls(
            id=coerce_id(payload.get("id")) or 0,
            title=str(payload.get("title") or ""),
            type=str(payload.get("type") or ""),
            coefficient=coefficient,
            status=str(payload.get("status") or SESSION_TYPE_ACTIVE),
        )

    @property
    def is_active(self) -> bool:
        return self.status == SESSION_TYPE_ACTIVE


@dataclass
class ClassRecord:
    """Entry of the class catalog used to scope and derive form fields."""

    id: int
    title: str
    status: int | None = None
    specialization_id: int | None = None
    school_year_id: int | None = None
    school_year_period_id: int | None = None
    specialization_title: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ClassRecord":
        specialization = payload.get("specialization") or {}
        title = specialization.get("title") if isinstance(specialization, Mapping) else None
        return cls(
            id=coerce_id(payload.get("id")) or 0,
            title=str(payload.get("title") or ""),
            status=coerce_status(payload.get("status")),
            specialization_id=coerce_id(payload.get("specialization_id")),
            school_year_id=coerce_id(payload.get("school_year_id")),
            school_year_period_id=coerce_id(payload.get("school_year_period_id")),
            specialization_title=title or None,
            raw=dict(payload),
        )


@dataclass
class PaginationMeta:
    page: int = 1
    limit: int = 50
    total: int = 0
    total_pages: int = 0
    has_next: bool = False
    has_previous: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrevious": self.has_previous,
        }


@dataclass
class Page:
    data: list[dict[str, Any]]
    meta: PaginationMeta
