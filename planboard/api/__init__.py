"""REST API definition using Flask-RESTX."""
from __future__ import annotations

from flask_restx import Api

from .catalogs import ns as catalogs_ns
from .health import ns as health_ns
from .planning import ns as planning_ns
from .session_types import ns as session_types_ns


def register_namespaces(api: Api) -> None:
    """Register all API namespaces."""
    api.add_namespace(health_ns, path="/health")
    api.add_namespace(planning_ns, path="/planning")
    api.add_namespace(catalogs_ns, path="/catalogs")
    api.add_namespace(session_types_ns, path="/session-types")
