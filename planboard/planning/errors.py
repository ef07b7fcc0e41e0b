from __future__ import annotations

from typing import Mapping


OVERLAP_MARKER = "overlap"


class PlanningError(Exception):
    """Base class for planning failures."""


class ValidationError(PlanningError):
    """Raised when the form is rejected before reaching the backend."""

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__(", ".join(f"{name}: {message}" for name, message in self.errors.items()))


class InvalidInterval(ValidationError):
    """Raised when a start/end pair does not describe a valid interval."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__({field: message})


class RemoteFailure(PlanningError):
    """A save attempt rejected by the backend."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConflictError(RemoteFailure):
    """The backend reported that the slot overlaps an existing session."""


class GenericRemoteError(RemoteFailure):
    """Any other backend failure."""


class DerivedFieldNotEditable(PlanningError):
    """Raised when a derived form field is written directly."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"{field} is derived and cannot be edited directly")


class DependentFieldLocked(PlanningError):
    """Raised when a field is written before the fields it depends on."""

    def __init__(self, field: str, requires: tuple[str, ...]) -> None:
        self.field = field
        self.requires = requires
        super().__init__(f"{field} requires {', '.join(requires)} to be selected first")


class SubmissionInProgress(PlanningError):
    """Raised when a mutation is attempted while another one is pending."""


class NoSessionSelected(PlanningError):
    """Raised when an operation needs a selected session and none is."""


def classify_remote_failure(message: str | None) -> RemoteFailure:
    text = (message or "").strip() or "Failed to save planning"
    if OVERLAP_MARKER in text.lower():
        return ConflictError(text)
    return GenericRemoteError(text)


class RemoteError(PlanningError):
    """Raised by a backend when a call fails or the backend is unreachable."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)
