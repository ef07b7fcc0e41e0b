from __future__ import annotations

import threading
import time
import uuid
from typing import Any, Callable, Dict

from .screen import PlanningScreen


class ScreenEntry:
    def __init__(self, screen: PlanningScreen) -> None:
        self.screen_id = uuid.uuid4().hex
        self.screen = screen
        self.lock = threading.RLock()
        self.touched_at = time.monotonic()

    def touch(self) -> None:
        self.touched_at = time.monotonic()

    def age(self) -> float:
        return time.monotonic() - self.touched_at


class ScreenRegistry:
    """In-memory registry storing one planning screen per browser session."""

    def __init__(self, factory: Callable[..., PlanningScreen]) -> None:
        self._factory = factory
        self._entries: Dict[str, ScreenEntry] = {}
        self._lock = threading.Lock()

    def create(self, **kwargs: Any) -> ScreenEntry:
        entry = ScreenEntry(self._factory(**kwargs))
        with self._lock:
            self._entries[entry.screen_id] = entry
        return entry

    def get(self, screen_id: str | None) -> ScreenEntry | None:
        if not screen_id:
            return None
        with self._lock:
            entry = self._entries.get(screen_id)
        if entry is not None:
            entry.touch()
        return entry

    def get_or_create(self, screen_id: str | None, **kwargs: Any) -> ScreenEntry:
        return self.get(screen_id) or self.create(**kwargs)

    def remove(self, screen_id: str) -> None:
        with self._lock:
            self._entries.pop(screen_id, None)

    def purge(self, max_age_seconds: float = 3600.0) -> int:
        with self._lock:
            stale_ids = [
                screen_id
                for screen_id, entry in self._entries.items()
                if entry.age() > max_age_seconds
            ]
            for screen_id in stale_ids:
                self._entries.pop(screen_id, None)
        return len(stale_ids)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
