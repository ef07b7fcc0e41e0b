"""Tracks the slot most recently rejected by the backend as overlapping."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from .models import Session, parse_iso_date
from .timeslots import normalize


logger = logging.getLogger(__name__)


def canonical_slot(date_day: Any, hour_start: Any, hour_end: Any) -> tuple[str, str, str]:
    """Dates as YYYY-MM-DD and times as HH:mm."""
    day = parse_iso_date(date_day)
    return (day.isoformat() if day else str(date_day or "")[:10], normalize(hour_start), normalize(hour_end))


@dataclass(frozen=True)
class ConflictSlot:
    date_day: str
    hour_start: str
    hour_end: str

    def as_dict(self) -> dict[str, str]:
        return {
            "date_day": self.date_day,
            "hour_start": self.hour_start,
            "hour_end": self.hour_end,
        }


class ConflictSurface:
    """Single source of truth for conflict highlighting in every view."""

    def __init__(self) -> None:
        self._slot: ConflictSlot | None = None

    @property
    def slot(self) -> ConflictSlot | None:
        return self._slot

    def mark_conflict(self, date_day: str, hour_start: str, hour_end: str) -> ConflictSlot:
        self._slot = ConflictSlot(*canonical_slot(date_day, hour_start, hour_end))
        logger.info("Conflict recorded for %s %s-%s", self._slot.date_day, self._slot.hour_start, self._slot.hour_end)
        return self._slot

    def clear(self) -> None:
        self._slot = None

    def is_conflicting(self, session: Session | Mapping[str, Any]) -> bool:
        slot = self._slot
        if slot is None:
            return False
        if isinstance(session, Session):
            triple = (session.date_day, session.hour_start, session.hour_end)
        else:
            triple = (
                session.get("date_day"),
                session.get("hour_start"),
                session.get("hour_end"),
            )
        return canonical_slot(*triple) == (slot.date_day, slot.hour_start, slot.hour_end)
