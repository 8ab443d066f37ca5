from __future__ import annotations


class LiftTrackerError(Exception):
    """Base class for failures surfaced by the lift repository."""

    code = "lift_tracker_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LiftTrackerError, ValueError):
    """Malformed input: bad date, non-positive reps/sets, negative weight."""

    code = "validation_error"


class AuthenticationError(LiftTrackerError, PermissionError):
    """No verified identity was present for an operation that needs one."""

    code = "authentication_error"


class AuthorizationError(LiftTrackerError, PermissionError):
    """The caller is authenticated but does not own the record."""

    code = "authorization_error"


class NotFoundError(LiftTrackerError, LookupError):
    code = "not_found"
