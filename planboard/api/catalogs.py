"""Select options for the planning form and filters."""
from __future__ import annotations

from typing import Any

from flask_restx import Namespace, Resource

from ..extensions import current_screen
from ..planning.screen import CATALOG_NAMES


ns = Namespace("catalogs", description="Reference data used by the planning selects")

OPTION_NAMES = CATALOG_NAMES + ("form_classes", "statuses")


@ns.route("")
class CatalogIndex(Resource):
    def get(self) -> dict[str, list[str]]:
        return {"catalogs": list(OPTION_NAMES)}


@ns.route("/refresh")
class CatalogRefresh(Resource):
    def post(self) -> dict[str, int]:
        with current_screen() as screen:
            screen.load_catalogs()
            return {name: len(screen.catalogs[name]) for name in CATALOG_NAMES}


@ns.route("/<string:name>")
@ns.param("name", "One of: " + ", ".join(OPTION_NAMES))
class CatalogOptions(Resource):
    def get(self, name: str) -> dict[str, Any]:
        key = name.replace("-", "_")
        if key not in OPTION_NAMES:
            ns.abort(404, f"Unknown catalog: {name}")
        with current_screen() as screen:
            return {"name": key, "options": screen.options(key)}
