"""HTTP client for the backend that persists sessions and detects overlaps."""
from __future__ import annotations

import logging
from typing import Any, Mapping

import requests

from ..planning.errors import RemoteError
from ..planning.models import Page
from .pagination import to_paginated


logger = logging.getLogger(__name__)

CATALOG_PARAMS = {"page": 1, "limit": 100}
UNEXPECTED_ERROR = "Unexpected error"


def extract_error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    message = body.get("message") if isinstance(body, dict) else None
    if isinstance(message, list):
        return ", ".join(str(item) for item in message)
    if isinstance(message, str) and message:
        return message
    return response.reason or UNEXPECTED_ERROR


class PlanningApiClient:
    """Thin wrapper around the backend REST resources used by the planner."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()
        self.http.headers.setdefault("Accept", "application/json")
        if token:
            self.http.headers["Authorization"] = f"Bearer {token}"

    def _url(self, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{path}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        url = self._url(path)
        try:
            response = self.http.request(
                method,
                url,
                params={key: value for key, value in (params or {}).items() if value is not None},
                json=json,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise RemoteError(str(exc) or UNEXPECTED_ERROR) from exc
        if not response.ok:
            message = extract_error_message(response)
            logger.warning("%s %s -> %s: %s", method, url, response.status_code, message)
            raise RemoteError(message, response.status_code)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteError("Invalid JSON response", response.status_code) from exc

    # Sessions -------------------------------------------------------
    def list_sessions(self, params: Mapping[str, Any] | None = None) -> Page:
        return to_paginated(self._request("GET", "/planning-student", params=params))

    def create_session(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/planning-student", json=dict(payload))

    def update_session(self, session_id: int, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._request("PATCH", f"/planning-student/{session_id}", json=dict(payload))

    def delete_session(self, session_id: int) -> None:
        self._request("DELETE", f"/planning-student/{session_id}")

    # Catalogs -------------------------------------------------------
    def _catalog(self, path: str, **params: Any) -> list[dict[str, Any]]:
        query = dict(CATALOG_PARAMS)
        query.update(params)
        return to_paginated(self._request("GET", path, params=query)).data

    def list_school_years(self) -> list[dict[str, Any]]:
        return self._catalog("/school-years")

    def list_periods(self, school_year_id: int | None) -> list[dict[str, Any]]:
        if not school_year_id:
            return []
        return self._catalog("/school-year-periods", schoolYearId=school_year_id)

    def list_classes(
        self,
        school_year_id: int | None = None,
        period_id: int | None = None,
    ) -> list[dict[str, Any]]:
        return self._catalog(
            "/classes",
            school_year_id=school_year_id,
            school_year_period_id=period_id,
        )

    def list_teachers(self) -> list[dict[str, Any]]:
        return self._catalog("/teachers")

    def list_class_rooms(self) -> list[dict[str, Any]]:
        return self._catalog("/class-rooms")

    def list_specializations(self) -> list[dict[str, Any]]:
        return self._catalog("/specializations")

    def list_courses(self) -> list[dict[str, Any]]:
        return self._catalog("/courses")

    def list_session_types(self, status: str | None = None) -> list[dict[str, Any]]:
        return self._catalog("/planning-session-types", status=status)

    def create_session_type(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/planning-session-types", json=dict(payload))
