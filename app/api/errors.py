"""Exception handlers mapping application errors to JSON responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.domain import AppError, InternalError

logger = logging.getLogger(__name__)


def api_error_payload(error_code: str, message: str) -> dict[str, str]:
    """Build the shared error response body."""

    return {"status": "error", "code": error_code, "message": message}


def api_register_exception_handlers(application: FastAPI) -> None:
    """Register application error handlers on a FastAPI instance.

    Args:
        application: Application to configure.

    Returns:
        None: Handlers are registered as side effect.
    """

    @application.exception_handler(AppError)
    async def api_handle_app_error(request: Request, error: AppError) -> JSONResponse:
        if isinstance(error, InternalError):
            logger.error(
                "internal error path=%s code=%s message=%s cause=%r",
                request.url.path,
                error.error_code,
                error.message,
                error.__cause__,
            )
        return JSONResponse(
            content=api_error_payload(error.error_code, error.message),
            status_code=error.http_status,
        )

    @application.exception_handler(RequestValidationError)
    async def api_handle_validation_error(request: Request, error: RequestValidationError) -> JSONResponse:
        details = error.errors()
        message = "Invalid request"
        if details:
            location = ".".join(str(part) for part in details[0].get("loc", ()))
            message = f"{location}: {details[0].get('msg', 'invalid value')}"
        return JSONResponse(
            content=api_error_payload("VALIDATION_ERROR", message),
            status_code=status.HTTP_400_BAD_REQUEST,
        )
