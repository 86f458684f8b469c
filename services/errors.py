"""Domain errors raised by the tracking and round services.

Each error carries the HTTP status the API layer renders it with, so the
routers never need per-exception branches.
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base for all domain errors."""

    status_code = 500
    error = "service_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}


class ValidationError(ServiceError):
    """Input violates a domain rule (score range, totals mismatch, ...)."""

    status_code = 400
    error = "validation_error"


class InvalidCoordinates(ValidationError):
    """Fix coordinates outside WGS84 ranges, non-finite, or negative accuracy."""

    error = "invalid_coordinates"


class StateConflict(ServiceError):
    """Operation not allowed in the round's current state, or a lost race."""

    status_code = 409
    error = "state_conflict"

    def __init__(
        self,
        message: str,
        current_status: Optional[str] = None,
        round_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.current_status = current_status
        self.round_id = round_id

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["current_status"] = self.current_status
        body["round_id"] = self.round_id
        return body


class InvalidRoundState(StateConflict):
    """Fix ingestion against a round that is not in progress."""

    error = "invalid_round_state"


class NotFound(ServiceError):
    status_code = 404
    error = "not_found"


class Forbidden(ServiceError):
    status_code = 403
    error = "forbidden"
