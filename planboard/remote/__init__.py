"""Access to the backend that stores planning sessions."""
from __future__ import annotations

from .client import PlanningApiClient, extract_error_message
from .pagination import to_paginated

__all__ = ["PlanningApiClient", "extract_error_message", "to_paginated"]
