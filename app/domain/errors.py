"""Project-native error taxonomy shared by orchestration and API layers.

Each error carries a stable machine-readable code and the HTTP status the API
layer maps it to. Original causes are chained with ``raise ... from`` and are
never rendered into API responses.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base exception for expected application failures.

    Attributes:
        message: Human-readable message safe to return to API callers.
        error_code: Stable machine-readable error code.
        http_status: HTTP status code used by the API layer.
        details: Optional structured details for logging.
    """

    default_error_code = "APP_ERROR"
    default_http_status = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        http_status: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.http_status = http_status or self.default_http_status
        self.details = details


class ValidationError(AppError):
    """Caller-supplied input failed validation."""

    default_error_code = "VALIDATION_ERROR"
    default_http_status = 400


class AuthorizationError(AppError):
    """Bearer token is missing, malformed, badly signed or expired."""

    default_error_code = "UNAUTHORIZED"
    default_http_status = 401


class NotFoundError(AppError):
    """Entity is missing or belongs to another organization."""

    default_error_code = "NOT_FOUND"
    default_http_status = 404

    def __init__(self, entity_name: str, entity_id: str):
        super().__init__(f"{entity_name} with id {entity_id} not found")
        self.entity_name = entity_name
        self.entity_id = entity_id


class ConflictError(AppError):
    """Requested state change conflicts with the current entity state."""

    default_error_code = "CONFLICT"
    default_http_status = 409


class InternalError(AppError):
    """Store, transport or unexpected failure hidden behind a generic message."""

    default_error_code = "INTERNAL_ERROR"
    default_http_status = 500
