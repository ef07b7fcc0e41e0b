"""Planning screen endpoints: calendar views, filters, form and mutations."""
from __future__ import annotations

from typing import Any

from flask import current_app, request
from flask_restx import Namespace, Resource, fields

from ..extensions import current_screen, screen_entry
from ..forms import session_payload_form
from ..planning.calendar import MONTH_VIEW, VIEW_MODES, WEEK_VIEW
from ..planning.errors import (
    ConflictError,
    DependentFieldLocked,
    DerivedFieldNotEditable,
    NoSessionSelected,
    SubmissionInProgress,
    ValidationError,
)
from ..planning.screen import MutationOutcome, PlanningScreen
from ..planning.timeslots import TIME_OPTIONS, end_time_options


ns = Namespace("planning", description="Weekly and monthly session planning")

NAVIGATE_ACTIONS = ("next", "previous", "today", "jump")

navigate_model = ns.model(
    "PlanningNavigate",
    {
        "action": fields.String(required=True, enum=list(NAVIGATE_ACTIONS)),
        "date": fields.String(description="Target day for the jump action (YYYY-MM-DD)"),
        "view_mode": fields.String(enum=list(VIEW_MODES)),
    },
)


def _view_payload(screen: PlanningScreen) -> dict[str, Any]:
    payload = screen.current_view()
    payload["pagination"] = screen.query.pagination()
    payload["error"] = screen.load_error
    return payload


def _apply_date(screen: PlanningScreen) -> None:
    value = request.args.get("date")
    if value and not screen.jump_to(value):
        ns.abort(400, "Invalid date", date=value)


def _filters_payload(screen: PlanningScreen) -> dict[str, Any]:
    return {
        "filters": screen.query.filters.as_dict(),
        "pagination": screen.query.pagination(),
        "params": screen.query.to_params(),
    }


def _write_fields(screen: PlanningScreen, values: list[tuple[str, Any]]) -> None:
    for name, value in values:
        try:
            screen.write_field(name, value)
        except DerivedFieldNotEditable as exc:
            ns.abort(400, str(exc), field=exc.field)
        except DependentFieldLocked as exc:
            ns.abort(400, str(exc), field=exc.field, requires=list(exc.requires))
        except KeyError:
            ns.abort(400, f"Unknown form field: {name}", field=name)


def _outcome_response(screen: PlanningScreen, outcome: MutationOutcome, success_code: int):
    snapshot = screen.form_snapshot()
    error = outcome.error
    if isinstance(error, ValidationError):
        ns.abort(422, "Validation failed", errors=error.errors, form=snapshot)
    if isinstance(error, ConflictError):
        ns.abort(409, error.message, alert=snapshot["alert"], conflict=snapshot["conflict"], form=snapshot)
    if error is not None:
        ns.abort(502, str(error), alert=snapshot["alert"], form=snapshot)
    session = outcome.session.as_dict() if outcome.session else None
    return {"action": outcome.action, "session": session, "form": snapshot}, success_code


@ns.route("/week")
@ns.param("date", "Any day of the week to display (YYYY-MM-DD)")
class WeekView(Resource):
    def get(self) -> dict[str, Any]:
        with current_screen() as screen:
            _apply_date(screen)
            screen.set_view_mode(WEEK_VIEW)
            screen.refresh()
            return _view_payload(screen)


@ns.route("/month")
@ns.param("date", "Any day of the month to display (YYYY-MM-DD)")
class MonthView(Resource):
    def get(self) -> dict[str, Any]:
        with current_screen() as screen:
            _apply_date(screen)
            screen.set_view_mode(MONTH_VIEW)
            screen.refresh()
            return _view_payload(screen)


@ns.route("/navigate")
class Navigate(Resource):
    @ns.expect(navigate_model, validate=True)
    def post(self) -> dict[str, Any]:
        payload = request.json or {}
        action = payload["action"]
        with current_screen() as screen:
            if payload.get("view_mode"):
                screen.set_view_mode(payload["view_mode"])
            if action == "next":
                screen.next()
            elif action == "previous":
                screen.previous()
            elif action == "today":
                screen.go_today()
            elif not screen.jump_to(payload.get("date")):
                ns.abort(400, "Invalid date", date=payload.get("date"))
            screen.refresh()
            return _view_payload(screen)


@ns.route("/sessions")
class Sessions(Resource):
    def get(self) -> dict[str, Any]:
        """Sessions of the current page, as returned by the backend."""
        with current_screen() as screen:
            screen.refresh()
            return {
                "data": [session.as_dict() for session in screen.sessions],
                "pagination": screen.query.pagination(),
                "error": screen.load_error,
            }

    def post(self):
        """Save the form, optionally after writing the posted fields into it."""
        payload = request.get_json(silent=True) or {}
        if "specialization_id" in payload:
            ns.abort(400, "specialization_id is derived and cannot be edited directly", field="specialization_id")
        form = session_payload_form(payload)
        if not form.validate():
            ns.abort(422, "Validation failed", errors=form.field_errors())
        entry = screen_entry()
        screen = entry.screen
        with entry.lock:
            _write_fields(screen, form.present_values())
            try:
                pending = screen.begin_submit()
            except SubmissionInProgress as exc:
                ns.abort(409, str(exc))
            except ValidationError as exc:
                action = "update" if screen.selected else "create"
                return _outcome_response(screen, MutationOutcome(action, error=exc), 200)
        # Other requests on this screen proceed while the backend call is in flight.
        outcome = screen.run(pending, lock=entry.lock)
        with entry.lock:
            if outcome.ok:
                current_app.logger.info("Planning session %s saved.", outcome.action)
            return _outcome_response(screen, outcome, 201 if outcome.action == "create" else 200)

    def delete(self):
        entry = screen_entry()
        screen = entry.screen
        with entry.lock:
            try:
                pending = screen.begin_delete()
            except NoSessionSelected as exc:
                ns.abort(400, str(exc))
            except SubmissionInProgress as exc:
                ns.abort(409, str(exc))
        outcome = screen.run(pending, lock=entry.lock)
        with entry.lock:
            return _outcome_response(screen, outcome, 200)


@ns.route("/filters")
class Filters(Resource):
    def get(self) -> dict[str, Any]:
        with current_screen() as screen:
            return _filters_payload(screen)

    def patch(self) -> dict[str, Any]:
        payload = request.get_json(silent=True) or {}
        with current_screen() as screen:
            for name, value in payload.items():
                try:
                    if name == "page":
                        screen.set_page(value)
                    elif name == "limit":
                        screen.set_limit(value)
                    else:
                        screen.set_filter(name, value)
                except KeyError:
                    ns.abort(400, f"Unknown filter: {name}", field=name)
                except (TypeError, ValueError):
                    ns.abort(400, f"Invalid value for {name}", field=name)
            return _filters_payload(screen)


@ns.route("/form")
class Form(Resource):
    def get(self) -> dict[str, Any]:
        with current_screen() as screen:
            return screen.form_snapshot()

    def patch(self) -> dict[str, Any]:
        payload = request.get_json(silent=True) or {}
        with current_screen() as screen:
            _write_fields(screen, list(payload.items()))
            return screen.form_snapshot()


@ns.route("/form/reset")
class FormReset(Resource):
    def post(self) -> dict[str, Any]:
        with current_screen() as screen:
            screen.reset_form()
            return screen.form_snapshot()


@ns.route("/form/select/<int:session_id>")
class FormSelect(Resource):
    def post(self, session_id: int) -> dict[str, Any]:
        with current_screen() as screen:
            try:
                screen.select_entry(session_id)
            except NoSessionSelected as exc:
                ns.abort(404, str(exc))
            return screen.form_snapshot()


@ns.route("/time-options")
@ns.param("start", "Selected start time (HH:mm)")
class TimeOptions(Resource):
    def get(self) -> dict[str, list[str]]:
        return {
            "start_options": list(TIME_OPTIONS),
            "end_options": end_time_options(request.args.get("start")),
        }
