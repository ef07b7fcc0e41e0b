"""Healthcheck endpoint."""
from __future__ import annotations

from flask import current_app
from flask_restx import Namespace, Resource

from ..extensions import screen_registry


ns = Namespace("health", description="Service health status")


@ns.route("")
class HealthResource(Resource):
    """Simple health check reporting the configured backend."""

    def get(self) -> dict[str, object]:
        return {
            "status": "ok",
            "backend": current_app.config.get("PLANNING_API_URL"),
            "screens": len(screen_registry()),
        }
