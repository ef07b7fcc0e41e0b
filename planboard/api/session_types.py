"""Inline creation of planning session types."""
from __future__ import annotations

from dataclasses import asdict

from flask import current_app, request
from flask_restx import Namespace, Resource, fields

from ..extensions import current_screen
from ..forms import session_type_form
from ..planning.errors import GenericRemoteError


ns = Namespace("session-types", description="Planning session types")

session_type_model = ns.model(
    "SessionType",
    {
        "title": fields.String(required=True),
        "type": fields.String(required=True),
        "coefficient": fields.Float,
        "status": fields.String(enum=["active", "inactive"]),
    },
)


@ns.route("")
class SessionTypeList(Resource):
    def get(self):
        with current_screen() as screen:
            return {"options": screen.options("session_types")}

    @ns.expect(session_type_model)
    def post(self):
        form = session_type_form(request.get_json(silent=True))
        if not form.validate():
            ns.abort(422, "Validation failed", errors=form.field_errors())
        with current_screen() as screen:
            try:
                created = screen.create_session_type(form.values())
            except GenericRemoteError as exc:
                ns.abort(502, exc.message)
            current_app.logger.info("Session type %s created (%s).", created.id, created.status)
            return {
                "session_type": asdict(created),
                "selected": screen.cascade.form.planning_session_type_id == created.id and created.is_active,
                "form": screen.form_snapshot(),
            }, 201
