"""Screen-level planning state: calendar, filters, form and conflict slot.

Every mutation goes through a named operation so the cascade and conflict
rules are enforced in one place and can be exercised without a UI.
"""
from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, ContextManager, Mapping

from . import labels
from .calendar import (
    MONTH_VIEW,
    WEEK_VIEW,
    CalendarBucket,
    CalendarNavigator,
    month_buckets,
    month_label,
    week_buckets,
    week_range_label,
)
from .cascade import CascadingSelectionController
from .conflicts import ConflictSurface
from .errors import (
    ConflictError,
    DerivedFieldNotEditable,
    GenericRemoteError,
    NoSessionSelected,
    PlanningError,
    RemoteError,
    SubmissionInProgress,
    ValidationError,
    classify_remote_failure,
)
from .form import build_payload, form_from_session, initial_form, validate_form
from .models import (
    FORM_STATUSES,
    SESSION_TYPE_ACTIVE,
    STATUS_LABELS,
    ClassRecord,
    Page,
    Session,
    SessionType,
    coerce_id,
)
from .query import DEFAULT_LIMIT, STATUS_ALL, PlanningQueryState
from .timeslots import TIME_OPTIONS, end_time_options


logger = logging.getLogger(__name__)

CATALOG_NAMES = (
    "school_years",
    "periods",
    "classes",
    "teachers",
    "class_rooms",
    "specializations",
    "session_types",
    "courses",
)

CREATED_MESSAGE = "Planning created successfully."
UPDATED_MESSAGE = "Planning updated successfully."
DELETED_MESSAGE = "Deleted successfully."
TYPE_SELECTED_MESSAGE = "Session type created and selected."
TYPE_INACTIVE_MESSAGE = "Session type created. Activate it to use when scheduling sessions."


@dataclass
class FormAlert:
    type: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"type": self.type, "message": self.message}


@dataclass
class MutationOutcome:
    """Result of a submit or delete; ``error`` is set when it did not succeed."""

    action: str
    session: Session | None = None
    error: PlanningError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class PendingMutation:
    """A save or delete taken from the screen and not yet sent."""

    action: str
    session: Session | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    slot: tuple[str, str, str] = ("", "", "")

    def send(self, backend: Any) -> Any:
        if self.action == "delete":
            return backend.delete_session(self.session.id)
        if self.action == "update":
            return backend.update_session(self.session.id, self.payload)
        return backend.create_session(self.payload)


class PlanningScreen:
    def __init__(
        self,
        backend: Any,
        *,
        today: date | None = None,
        limit: int = DEFAULT_LIMIT,
        view_mode: str = WEEK_VIEW,
    ) -> None:
        self.backend = backend
        self.navigator = CalendarNavigator(today or date.today(), view_mode)
        self.query = PlanningQueryState(limit=limit)
        self.cascade = CascadingSelectionController(initial_form(self.navigator.week_start))
        self.conflicts = ConflictSurface()
        self.selected: Session | None = None
        self.alert: FormAlert | None = None
        self.is_submitting = False
        self.is_deleting = False
        self.sessions: list[Session] = []
        self.load_error: str | None = None
        self.catalogs: dict[str, list[dict[str, Any]]] = {name: [] for name in CATALOG_NAMES}
        self.session_types: list[SessionType] = []
        self._loaded_key: tuple | None = None

    # Session list ---------------------------------------------------
    def current_key(self) -> tuple:
        return self.query.request_key(self.navigator.anchor)

    def invalidate(self) -> None:
        self._loaded_key = None

    def refresh(self, *, force: bool = False) -> None:
        key = self.current_key()
        if not force and key == self._loaded_key:
            return
        try:
            page = self.backend.list_sessions(self.query.to_params())
        except RemoteError as exc:
            logger.warning("Unable to load planning sessions: %s", exc.message)
            self.load_error = exc.message
            return
        self.apply_page(key, page)

    def apply_page(self, key: tuple, page: Page) -> bool:
        """Store a list response unless the request it answers is superseded."""

        if key != self.current_key():
            logger.debug("Ignoring superseded planning response for %s", key[0])
            return False
        self.sessions = [Session.from_payload(item) for item in page.data if isinstance(item, Mapping)]
        self.query.apply_meta(page.meta)
        self.load_error = None
        self._loaded_key = key
        return True

    def find_session(self, session_id: int) -> Session | None:
        return next((session for session in self.sessions if session.id == session_id), None)

    # Catalogs -------------------------------------------------------
    def _load_catalog(self, name: str, loader, *args) -> list[dict[str, Any]]:
        try:
            records = loader(*args) or []
        except RemoteError as exc:
            logger.warning("Unable to load %s: %s", name, exc.message)
            records = []
        self.catalogs[name] = list(records)
        return self.catalogs[name]

    def load_catalogs(self) -> None:
        self._load_catalog("school_years", self.backend.list_school_years)
        self._load_catalog("teachers", self.backend.list_teachers)
        self._load_catalog("class_rooms", self.backend.list_class_rooms)
        self._load_catalog("specializations", self.backend.list_specializations)
        self._load_catalog("courses", self.backend.list_courses)
        self._load_catalog("classes", self.backend.list_classes)
        self.cascade.load_classes(ClassRecord.from_payload(item) for item in self.catalogs["classes"])
        self.load_session_types()
        self.load_periods()

    def load_session_types(self) -> None:
        records = self._load_catalog("session_types", self.backend.list_session_types, SESSION_TYPE_ACTIVE)
        self.session_types = [SessionType.from_payload(item) for item in records]

    def load_periods(self) -> None:
        self._load_catalog("periods", self.backend.list_periods, self.cascade.form.school_year_id)

    def load_scoped_classes(self) -> None:
        form = self.cascade.form
        try:
            records = self.backend.list_classes(form.school_year_id, coerce_id(form.period)) or []
        except RemoteError as exc:
            logger.warning("Unable to load classes: %s", exc.message)
            return
        merged = {record.id: record for record in self.cascade.classes.values()}
        for item in records:
            record = ClassRecord.from_payload(item)
            if record.id:
                merged[record.id] = record
        self.cascade.load_classes(merged.values())

    def options(self, name: str) -> list[dict[str, Any]]:
        if name == "teachers":
            return labels.teacher_options(self.catalogs["teachers"])
        if name == "session_types":
            return labels.session_type_options(self.session_types)
        if name == "form_classes":
            return self.cascade.class_options()
        if name == "statuses":
            return [{"value": STATUS_ALL, "label": "All statuses"}] + self.status_options()
        if name not in self.catalogs:
            raise KeyError(name)
        return labels.map_options(self.catalogs[name])

    @staticmethod
    def status_options() -> list[dict[str, Any]]:
        return [{"value": status, "label": STATUS_LABELS[status]} for status in FORM_STATUSES]

    def period_labels(self) -> dict[str, str]:
        return {str(option["value"]): option["label"] for option in labels.map_options(self.catalogs["periods"])}

    # Filters --------------------------------------------------------
    def set_filter(self, name: str, value: Any) -> None:
        self.query.set_filter(name, value)

    def set_page(self, page: int) -> None:
        self.query.set_page(page)

    def set_limit(self, limit: int) -> None:
        self.query.set_limit(limit)

    # Navigation -----------------------------------------------------
    def set_view_mode(self, view_mode: str) -> None:
        self.navigator.set_view_mode(view_mode)

    def next(self) -> None:
        self.navigator.next()
        self.conflicts.clear()

    def previous(self) -> None:
        self.navigator.previous()
        self.conflicts.clear()

    def _anchors(self) -> tuple[date, date]:
        return self.navigator.week_start, self.navigator.month_start

    def jump_to(self, iso_date: str) -> bool:
        before = self._anchors()
        if not self.navigator.jump_to(iso_date):
            return False
        if self._anchors() != before:
            self.conflicts.clear()
        return True

    def go_today(self, today: date | None = None) -> None:
        before = self._anchors()
        self.navigator.today(today)
        if self._anchors() != before:
            self.conflicts.clear()

    # Rendering ------------------------------------------------------
    def _entry_payload(self, session: Session, now: datetime, period_labels: Mapping[str, str]) -> dict[str, Any]:
        payload = session.as_dict()
        payload.update(
            {
                "conflict": self.conflicts.is_conflicting(session),
                "tone": labels.entry_tone(session, now),
                "time_range": labels.time_range(session),
                "teacher_name": labels.teacher_name(session),
                "session_type_title": labels.session_type_title(session),
                "session_type_meta": labels.session_type_meta(session),
                "status_label": labels.status_label(session.status),
                "period_label": labels.period_label(session, period_labels),
                "selected": self.selected is not None and self.selected.id == session.id,
            }
        )
        return payload

    def _render(self, buckets: list[CalendarBucket], now: datetime) -> list[dict[str, Any]]:
        period_labels = self.period_labels()
        return [
            {
                "date": bucket.date,
                "label": bucket.label,
                "is_current_month": bucket.is_current_month,
                "is_today": bucket.is_today,
                "entries": [self._entry_payload(session, now, period_labels) for session in bucket.sessions],
            }
            for bucket in buckets
        ]

    def week_view(self, now: datetime | None = None) -> dict[str, Any]:
        now = now or datetime.now()
        anchor = self.navigator.week_start
        buckets = week_buckets(anchor, self.sessions, today=now.date())
        return {
            "view": WEEK_VIEW,
            "anchor": anchor.isoformat(),
            "label": week_range_label(anchor),
            "buckets": self._render(buckets, now),
            "conflict": self.conflicts.slot.as_dict() if self.conflicts.slot else None,
        }

    def month_view(self, now: datetime | None = None) -> dict[str, Any]:
        now = now or datetime.now()
        anchor = self.navigator.month_start
        buckets = month_buckets(anchor, self.sessions, today=now.date())
        return {
            "view": MONTH_VIEW,
            "anchor": anchor.isoformat(),
            "label": month_label(anchor),
            "buckets": self._render(buckets, now),
            "conflict": self.conflicts.slot.as_dict() if self.conflicts.slot else None,
        }

    def current_view(self, now: datetime | None = None) -> dict[str, Any]:
        if self.navigator.view_mode == MONTH_VIEW:
            return self.month_view(now)
        return self.week_view(now)

    # Form -----------------------------------------------------------
    def write_field(self, name: str, value: Any) -> None:
        if name == "specialization_id":
            raise DerivedFieldNotEditable(name)
        previous_year = self.cascade.form.school_year_id
        previous_period = self.cascade.form.period
        self.cascade.write(name, value)
        form = self.cascade.form
        if name == "school_year_id" and form.school_year_id != previous_year:
            self.load_periods()
        if name in ("school_year_id", "period") and self.cascade.can_select_class:
            if (form.school_year_id, form.period) != (previous_year, previous_period):
                self.load_scoped_classes()

    def select_entry(self, session_id: int) -> Session:
        session = self.find_session(session_id)
        if session is None:
            raise NoSessionSelected(f"Session {session_id} is not loaded")
        self.selected = session
        self.cascade.hydrate(form_from_session(session))
        self.alert = None
        self.conflicts.clear()
        self.load_periods()
        return session

    def reset_form(self) -> None:
        self.selected = None
        self.cascade.hydrate(initial_form(self.navigator.week_start))
        self.alert = None
        self.conflicts.clear()

    def form_snapshot(self) -> dict[str, Any]:
        form = self.cascade.form
        specialization_titles = {
            option["value"]: option["label"] for option in labels.map_options(self.catalogs["specializations"])
        }
        return {
            "values": form.values(),
            "errors": {name: message for name, message in form.errors.items() if message},
            "alert": self.alert.as_dict() if self.alert else None,
            "mode": "edit" if self.selected else "create",
            "selected_id": self.selected.id if self.selected else None,
            "is_submitting": self.is_submitting,
            "is_deleting": self.is_deleting,
            "can_select_period": self.cascade.can_select_period,
            "can_select_class": self.cascade.can_select_class,
            "class_options": self.cascade.class_options(),
            "specialization_label": self.cascade.specialization_label(specialization_titles),
            "start_options": list(TIME_OPTIONS),
            "end_options": end_time_options(form.hour_start),
            "conflict": self.conflicts.slot.as_dict() if self.conflicts.slot else None,
        }

    # Mutations ------------------------------------------------------
    # ``begin_*`` marks a mutation pending, ``PendingMutation.send`` talks to
    # the backend and ``finish`` applies the result.
    def begin_submit(self) -> PendingMutation:
        """Validate the form and mark a save as pending.

        Raises ``ValidationError`` when the form is rejected locally and
        ``SubmissionInProgress`` while another save is pending.
        """

        if self.is_submitting:
            raise SubmissionInProgress("A save is already in progress")
        self.conflicts.clear()
        form = self.cascade.form
        errors = validate_form(form)
        if errors:
            self.cascade.set_errors(errors)
            self.alert = None
            raise ValidationError(errors)
        self.is_submitting = True
        return PendingMutation(
            "update" if self.selected else "create",
            session=self.selected,
            payload=build_payload(form),
            slot=(form.date_day, form.hour_start, form.hour_end),
        )

    def begin_delete(self) -> PendingMutation:
        if self.selected is None:
            raise NoSessionSelected("Select a session to delete")
        if self.is_deleting or self.is_submitting:
            raise SubmissionInProgress("A save is already in progress")
        self.conflicts.clear()
        self.is_deleting = True
        return PendingMutation("delete", session=self.selected)

    def run(self, pending: PendingMutation, lock: ContextManager[Any] = nullcontext()) -> MutationOutcome:
        """Send ``pending`` to the backend, holding ``lock`` only to apply the result."""

        try:
            result = pending.send(self.backend)
        except RemoteError as exc:
            with lock:
                return self.finish(pending, error=exc)
        except Exception:
            with lock:
                self.abandon(pending)
            raise
        with lock:
            return self.finish(pending, result)

    def abandon(self, pending: PendingMutation) -> None:
        if pending.action == "delete":
            self.is_deleting = False
        else:
            self.is_submitting = False

    def finish(self, pending: PendingMutation, result: Any = None, error: RemoteError | None = None) -> MutationOutcome:
        self.abandon(pending)
        if pending.action == "delete":
            return self._finish_delete(pending, error)
        return self._finish_save(pending, result, error)

    def _finish_save(self, pending: PendingMutation, result: Any, error: RemoteError | None) -> MutationOutcome:
        action = pending.action
        if error is not None:
            failure = classify_remote_failure(error.message)
            self.alert = FormAlert("error", failure.message)
            if isinstance(failure, ConflictError):
                self.conflicts.mark_conflict(*pending.slot)
            logger.warning("Planning %s rejected: %s", action, failure.message)
            return MutationOutcome(action, error=failure)

        saved = Session.from_payload(result) if isinstance(result, Mapping) else None
        logger.info("Planning %s succeeded for %s %s-%s", action, *pending.slot)
        self.alert = FormAlert("success", UPDATED_MESSAGE if action == "update" else CREATED_MESSAGE)
        self.invalidate()
        self.refresh(force=True)
        self.conflicts.clear()
        if action == "create":
            self.cascade.hydrate(initial_form(self.navigator.week_start))
        elif self.selected is not None:
            fallback = saved if saved is not None and saved.id == self.selected.id else self.selected
            self.selected = self.find_session(self.selected.id) or fallback
        return MutationOutcome(action, session=saved)

    def _finish_delete(self, pending: PendingMutation, error: RemoteError | None) -> MutationOutcome:
        session = pending.session
        if error is not None:
            message = error.message or "Failed to delete planning"
            self.alert = FormAlert("error", message)
            logger.warning("Planning delete rejected for %s: %s", session.id, message)
            return MutationOutcome("delete", session=session, error=GenericRemoteError(message))
        logger.info("Planning session %s deleted", session.id)
        self.invalidate()
        self.refresh(force=True)
        if self.selected is not None and self.selected.id == session.id:
            self.reset_form()
        self.alert = FormAlert("success", DELETED_MESSAGE)
        return MutationOutcome("delete", session=session)

    def submit(self) -> MutationOutcome:
        """Validate and save the form; never lets a backend failure escape."""

        action = "update" if self.selected else "create"
        try:
            pending = self.begin_submit()
        except ValidationError as exc:
            return MutationOutcome(action, error=exc)
        return self.run(pending)

    def delete(self) -> MutationOutcome:
        return self.run(self.begin_delete())

    def create_session_type(self, values: Mapping[str, Any]) -> SessionType:
        payload = {
            "title": str(values.get("title") or "").strip(),
            "type": str(values.get("type") or "").strip(),
            "coefficient": values.get("coefficient"),
            "status": values.get("status") or SESSION_TYPE_ACTIVE,
        }
        try:
            result = self.backend.create_session_type(payload)
        except RemoteError as exc:
            raise GenericRemoteError(exc.message or "Failed to create session type") from exc
        created = SessionType.from_payload(result or payload)
        self.load_session_types()
        if created.is_active and created.id:
            self.cascade.write("planning_session_type_id", created.id)
            self.alert = FormAlert("success", TYPE_SELECTED_MESSAGE)
        else:
            self.alert = FormAlert("success", TYPE_INACTIVE_MESSAGE)
        return created
