"""Flask extensions and per-request access to the planning screen."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from flask import Blueprint, Flask, current_app, session
from flask_restx import Api

from .planning.registry import ScreenEntry, ScreenRegistry
from .planning.screen import PlanningScreen


SCREEN_SESSION_KEY = "planning_screen_id"
REGISTRY_KEY = "planboard.screens"


def init_api(app: Flask) -> Api:
    """Mount the REST API under ``<URL_PREFIX>/api``."""
    from .api import register_namespaces

    url_prefix = app.config.get("URL_PREFIX", "")
    blueprint = Blueprint("api", __name__, url_prefix=f"{url_prefix}/api")
    api = Api(
        blueprint,
        version=app.config.get("API_VERSION", "0.1.0"),
        title=app.config.get("API_TITLE", "Planboard API"),
        doc="/docs",
    )
    register_namespaces(api)
    app.register_blueprint(blueprint)
    return api


def screen_registry() -> ScreenRegistry:
    return current_app.extensions[REGISTRY_KEY]


def screen_entry() -> ScreenEntry:
    """Return the registry entry bound to the caller's session cookie."""
    registry = screen_registry()
    purged = registry.purge(current_app.config.get("PLANNING_SCREEN_TTL", 3600.0))
    if purged:
        current_app.logger.info("Purged %s idle planning screen(s).", purged)
    entry = registry.get_or_create(session.get(SCREEN_SESSION_KEY))
    session[SCREEN_SESSION_KEY] = entry.screen_id
    return entry


@contextmanager
def current_screen() -> Iterator[PlanningScreen]:
    entry = screen_entry()
    with entry.lock:
        yield entry.screen
