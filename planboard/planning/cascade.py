"""Dependent form selections: school year -> period -> class -> specialization.

Field writes go through :func:`reduce_form`, a reducer driven by the static
``CLEARS``/``REQUIRES`` tables so the whole cascade can be checked as data.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, Mapping

from .errors import DependentFieldLocked, DerivedFieldNotEditable
from .form import ID_FIELDS, FormState
from .models import (
    DEFAULT_SESSION_STATUS,
    STATUS_DELETED,
    ClassRecord,
    coerce_id,
    coerce_status,
)
from .timeslots import normalize, reconcile_end


# Writing the key empties every listed field (and what derives from them).
CLEARS: dict[str, tuple[str, ...]] = {
    "school_year_id": ("period", "class_id"),
    "period": ("class_id",),
}

# A field can only be written once all listed fields hold a value.
REQUIRES: dict[str, tuple[str, ...]] = {
    "period": ("school_year_id",),
    "class_id": ("school_year_id", "period"),
}

# Derived field -> the field it is computed from.
DERIVED: dict[str, str] = {
    "specialization_id": "class_id",
}


def _coerce(name: str, value: Any) -> Any:
    if name in ID_FIELDS:
        return coerce_id(value)
    if name in ("hour_start", "hour_end"):
        return normalize(value)
    if name == "status":
        status = coerce_status(value)
        return DEFAULT_SESSION_STATUS if status is None else status
    if value is None:
        return ""
    return str(value).strip()


def _empty(name: str) -> Any:
    return None if name in ID_FIELDS else ""


def _is_set(form: FormState, name: str) -> bool:
    value = getattr(form, name)
    return value is not None and value != ""


def resolve_specialization(class_id: int | None, catalog: Mapping[int, ClassRecord]) -> int | None:
    if class_id is None:
        return None
    record = catalog.get(class_id)
    if record is None:
        return None
    return record.specialization_id


def reduce_form(
    form: FormState,
    name: str,
    value: Any,
    catalog: Mapping[int, ClassRecord],
) -> FormState:
    """Return the form that results from writing ``value`` into ``name``."""

    if name in DERIVED:
        raise DerivedFieldNotEditable(name)
    if name not in FormState.field_names():
        raise KeyError(f"Unknown form field: {name}")
    coerced = _coerce(name, value)
    missing = tuple(dep for dep in REQUIRES.get(name, ()) if not _is_set(form, dep))
    if missing and coerced not in (None, ""):
        raise DependentFieldLocked(name, missing)

    changes: dict[str, Any] = {name: coerced}
    cleared = CLEARS.get(name, ())
    for target in cleared:
        changes[target] = _empty(target)

    class_id = changes.get("class_id", form.class_id)
    if "class_id" in changes:
        for derived, source in DERIVED.items():
            if source == "class_id":
                changes[derived] = resolve_specialization(class_id, catalog)

    if name == "hour_start":
        changes["hour_end"] = reconcile_end(coerced, form.hour_end)

    errors = dict(form.errors)
    errors.pop(name, None)
    changes["errors"] = errors
    return replace(form, **changes)


class CascadingSelectionController:
    """Owns the form state and the class catalog the cascade reads from."""

    def __init__(self, form: FormState | None = None, classes: Iterable[ClassRecord] = ()) -> None:
        self.form = form or FormState()
        self._classes: dict[int, ClassRecord] = {}
        self.load_classes(classes)

    def load_classes(self, classes: Iterable[ClassRecord]) -> None:
        self._classes = {record.id: record for record in classes if record.id}

    @property
    def classes(self) -> dict[int, ClassRecord]:
        return dict(self._classes)

    @property
    def can_select_period(self) -> bool:
        return _is_set(self.form, "school_year_id")

    @property
    def can_select_class(self) -> bool:
        return _is_set(self.form, "school_year_id") and _is_set(self.form, "period")

    def write(self, name: str, value: Any) -> FormState:
        self.form = reduce_form(self.form, name, value, self._classes)
        return self.form

    def set_specialization(self, value: Any) -> None:
        raise DerivedFieldNotEditable("specialization_id")

    def resolve_specialization_for_class(self, class_id: Any) -> int | None:
        return resolve_specialization(coerce_id(class_id), self._classes)

    def hydrate(self, form: FormState) -> FormState:
        """Replace the form wholesale (edit mode) without running the cascade."""

        self.form = replace(form, errors={})
        return self.form

    def set_errors(self, errors: Mapping[str, str]) -> None:
        self.form = replace(self.form, errors=dict(errors))

    def class_options(self) -> list[dict[str, Any]]:
        """Classes belonging to the selected school year and period."""

        if not self.can_select_class:
            return []
        period_id = coerce_id(self.form.period)
        options: list[dict[str, Any]] = []
        for record in self._classes.values():
            if record.status == STATUS_DELETED:
                continue
            if record.school_year_id != self.form.school_year_id:
                continue
            if record.school_year_period_id != period_id:
                continue
            options.append({"value": record.id, "label": record.title or f"Class #{record.id}"})
        return options

    def specialization_label(self, titles: Mapping[int, str] | None = None) -> str:
        record = self._classes.get(self.form.class_id) if self.form.class_id else None
        if record is not None and record.specialization_title:
            return record.specialization_title
        spec_id = self.form.specialization_id
        if spec_id is None:
            return ""
        if titles and titles.get(spec_id):
            return titles[spec_id]
        return f"Specialization #{spec_id}"
