"""
Error kinds shared by every component.

Services raise these; the HTTP layer renders them with ``error_payload``.
Only ``Unavailable`` is eligible for caller-side retry.
"""

from __future__ import annotations

from typing import Any, Optional


class CoreError(Exception):
    status_code = 400
    code = "ERROR"
    default_message = "The request could not be completed."
    retryable = False

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(CoreError):
    status_code = 401
    code = "UNAUTHENTICATED"
    default_message = "Sign in to continue."


class Unauthorized(CoreError):
    """A supplied credential (e.g. an organization join secret) was wrong."""
    status_code = 403
    code = "UNAUTHORIZED"
    default_message = "The supplied credential is incorrect."


class Forbidden(CoreError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "You do not have permission to do that."


class NotFound(CoreError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "The requested resource does not exist."


class Conflict(CoreError):
    status_code = 409
    code = "CONFLICT"
    default_message = "The request conflicts with the current state."


class ValidationError(CoreError):
    status_code = 422
    code = "VALIDATION_ERROR"
    default_message = "The request contains invalid input."


class Unavailable(CoreError):
    status_code = 503
    code = "UNAVAILABLE"
    default_message = "The service is temporarily unavailable. Please try again."
    retryable = True


def error_payload(exc: CoreError) -> dict[str, Any]:
    return {
        "error": {
            "code": exc.code,
            "message": exc.message,
            "status": exc.status_code,
        }
    }


def require_text(value: Optional[str], field: str) -> str:
    """Return ``value`` stripped, raising ``ValidationError`` when blank."""
    if value is None or not value.strip():
        raise ValidationError(f"{field} must not be empty")
    return value.strip()
