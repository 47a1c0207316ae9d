"""
Typed errors for the request and admin flows, plus the FastAPI handlers
that render them.

Every AppError becomes ``{"success": false, "error", "code", ...}`` with
its own status; a ``retry_after`` also becomes a Retry-After header.
A body FastAPI cannot parse is a ValidationError as well, so clients
never see the framework 422. Anything else is an opaque 500 (Sentry, when configured, captures it
first). Verify-code outcomes are results, not errors; see
services.verification_service.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.logging import get_logger

log = get_logger(__name__)


class AppError(Exception):
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
        retry_after: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details
        self.retry_after = retry_after

    def to_dict(self) -> dict:
        optional = {
            "field": self.field,
            "details": self.details,
            "retry_after": self.retry_after,
        }
        return {
            "success": False,
            "error": self.message,
            "code": self.error_code,
            **{k: v for k, v in optional.items() if v is not None},
        }


class ValidationError(AppError):
    """Missing or malformed input, or an email the service will not accept."""

    status_code = 400
    error_code = "validation_error"


class AuthenticationError(AppError):
    """Missing or wrong admin bearer key."""

    status_code = 401
    error_code = "authentication_error"


class ConflictError(AppError):
    """An account already exists for the email."""

    status_code = 409
    error_code = "conflict"


class RateLimitError(AppError):
    status_code = 429
    error_code = "rate_limit_exceeded"


class EmailDeliveryError(AppError):
    """The email provider did not accept the verification email."""

    status_code = 502
    error_code = "email_delivery_failed"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        log.info(
            "request_rejected",
            path=request.url.path,
            status_code=exc.status_code,
            error_code=exc.error_code,
        )
        headers = (
            {"Retry-After": str(exc.retry_after)} if exc.retry_after is not None else None
        )
        return JSONResponse(
            status_code=exc.status_code, content=exc.to_dict(), headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        problems = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        loc = problems[0]["loc"] if problems else []
        error = ValidationError(
            "Invalid request body",
            field=loc[-1] if len(loc) > 1 and not loc[-1].isdigit() else None,
            details=problems,
        )
        return await app_error_handler(request, error)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        log.error(
            "unhandled_exception",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal server error",
                "code": "internal_error",
            },
        )
