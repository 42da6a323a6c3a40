"""
Error hierarchy for the load lifecycle engine.

Every command either succeeds completely or raises one of these errors
without touching stored state. None of them are retried by the core; the
calling gateway decides whether to re-query and re-display.
"""

from typing import Any, Optional


class FreightMatchError(Exception):
    """Base class for all engine errors."""

    kind = "error"

    def __init__(self, message: str, load_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.load_id = load_id

    def __str__(self) -> str:
        if self.load_id:
            return f"{self.message} (load_id={self.load_id})"
        return self.message


class ValidationError(FreightMatchError):
    """Malformed or missing load terms."""

    kind = "validation"

    def __init__(
        self,
        message: str,
        errors: Optional[list[dict[str, Any]]] = None,
        load_id: Optional[str] = None,
    ) -> None:
        super().__init__(message, load_id=load_id)
        self.errors = errors or []


class NotFoundError(FreightMatchError):
    """Unknown load id."""

    kind = "not_found"


class AuthorizationError(FreightMatchError):
    """Caller's role or identity does not match the command's required actor."""

    kind = "authorization"


class StateError(FreightMatchError):
    """The load is not in the status the command requires."""

    kind = "state"


class ConflictError(StateError):
    """A claim lost the compare-and-swap: the load is no longer available."""

    kind = "conflict"


class ActiveJobError(ConflictError):
    """The claimant already holds an active job."""

    kind = "active_job"
