from __future__ import annotations

from typing import Any

from ..planning.models import Page, PaginationMeta
from ..planning.query import derive_meta


def to_paginated(raw: Any) -> Page:
    """Normalise a list response, which may be a bare array or ``{data, meta}``."""

    if isinstance(raw, list):
        return Page(
            data=list(raw),
            meta=PaginationMeta(
                page=1,
                limit=len(raw),
                total=len(raw),
                total_pages=1,
                has_next=False,
                has_previous=False,
            ),
        )
    body = raw if isinstance(raw, dict) else {}
    data = body.get("data") or []
    if not isinstance(data, list):
        data = []
    return Page(data=data, meta=derive_meta(body.get("meta"), data))
