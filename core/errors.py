"""Error taxonomy for the facility tracker core.

ValidationError and NotFound are caller-side conditions; StoreError is a
data-access failure a client may retry; InvalidArgument is a programming
error in the caller.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """One field-level validation message."""
    field: str
    message: str


class FacilityTrackerError(Exception):
    """Base class for all core errors."""


class ValidationError(FacilityTrackerError):
    """Malformed or out-of-range input. Carries field-level detail."""

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        detail = "; ".join(f"{e.field}: {e.message}" for e in self.errors)
        super().__init__(f"Validation failed: {detail}")


class NotFound(FacilityTrackerError):
    """The requested record does not exist."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} '{key}' not found")


class StoreError(FacilityTrackerError):
    """Underlying data access failure. Never retried by the core."""


class InvalidArgument(FacilityTrackerError):
    """Caller passed an argument the operation cannot accept."""
