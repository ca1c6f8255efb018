"""
Application errors.

Every failure a request can hit is one of these. The handlers registered in
``colmena.main`` turn them into the ``{"status": "error", ...}`` envelope.
"""
from typing import Any, List, Optional

from fastapi import status


class AppError(Exception):
    """Base class for operational errors with an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ValidationError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Validation errors"


class InvalidStateTransition(AppError):
    """Scan attempted on a visit that has no next state."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Invalid state transition"

    def __init__(self, current_state: str, message: Optional[str] = None):
        self.current_state = current_state
        super().__init__(message or f"Visit already completed (current state: {current_state})")


class ConcurrentTransitionError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Visit was already transitioned concurrently"


class VisitExpiredError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "QR token expired"

