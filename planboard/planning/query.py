"""Filter and pagination state translated into backend query parameters."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping, Sequence

from .models import PaginationMeta, coerce_id, coerce_status


STATUS_ALL = "all"
DEFAULT_LIMIT = 50
DEFAULT_ORDER = "ASC"

ID_FILTERS: tuple[str, ...] = (
    "class_id",
    "teacher_id",
    "class_room_id",
    "specialization_id",
    "planning_session_type_id",
    "course_id",
)
FILTER_FIELDS: tuple[str, ...] = ("status",) + ID_FILTERS


@dataclass
class FilterState:
    status: int | str | None = STATUS_ALL
    class_id: int | None = None
    teacher_id: int | None = None
    class_room_id: int | None = None
    specialization_id: int | None = None
    planning_session_type_id: int | None = None
    course_id: int | None = None

    def as_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in FILTER_FIELDS}


def _coerce_status_filter(value: Any) -> int | str | None:
    if value is None or value == "":
        return None
    if value == STATUS_ALL:
        return STATUS_ALL
    return coerce_status(value)


def derive_meta(raw_meta: Mapping[str, Any] | None, data: Sequence[Any]) -> PaginationMeta:
    """Fill the gaps of a pagination block returned by the backend.

    ``totalPages`` falls back to ``lastPage`` then ``ceil(total / limit)``
    (never below 1); ``hasNext``/``hasPrevious`` are derived from the page when
    the backend leaves them out.
    """

    meta = dict(raw_meta or {})
    page = _int_or(meta.get("page"), 1)
    limit = _int_or(meta.get("limit"), len(data) if data is not None else 10)
    total = _int_or(meta.get("total"), len(data) if data is not None else 0)
    total_pages = meta.get("totalPages")
    if total_pages is None:
        total_pages = meta.get("lastPage")
    if total_pages is None:
        total_pages = max(1, math.ceil(total / limit)) if limit > 0 else 1
    total_pages = _int_or(total_pages, 1)
    has_next = meta.get("hasNext")
    has_previous = meta.get("hasPrevious")
    return PaginationMeta(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_next=bool(has_next) if has_next is not None else page < total_pages,
        has_previous=bool(has_previous) if has_previous is not None else page > 1,
    )


def _int_or(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass
class PlanningQueryState:
    filters: FilterState = field(default_factory=FilterState)
    page: int = 1
    limit: int = DEFAULT_LIMIT
    meta: PaginationMeta = field(default_factory=PaginationMeta)

    def set_filter(self, name: str, value: Any) -> None:
        if name not in FILTER_FIELDS:
            raise KeyError(f"Unknown filter: {name}")
        if name == "status":
            coerced = _coerce_status_filter(value)
        else:
            coerced = coerce_id(value)
        setattr(self.filters, name, coerced)
        self.page = 1

    def set_page(self, page: int) -> None:
        self.page = max(1, int(page))

    def set_limit(self, limit: int) -> None:
        self.limit = max(1, int(limit))
        self.page = 1

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "page": self.page,
            "limit": self.limit,
            "order": DEFAULT_ORDER,
        }
        status = self.filters.status
        if status is not None and status != STATUS_ALL:
            params["status"] = status
        for name in ID_FILTERS:
            value = getattr(self.filters, name)
            if value:
                params[name] = int(value)
        return params

    def request_key(self, anchor: date) -> tuple:
        return (anchor.isoformat(), tuple(sorted(self.to_params().items())))

    def apply_meta(self, meta: PaginationMeta) -> None:
        self.meta = meta

    def pagination(self) -> dict[str, Any]:
        data = self.meta.as_dict()
        data["page"] = self.page
        data["limit"] = self.limit
        return data
