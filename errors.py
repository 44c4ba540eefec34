"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to consistent JSON responses.

Non-AppError exceptions bubble up as 500s (with Sentry reporting in production).
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload

    def headers(self) -> Optional[dict[str, str]]:
        return None


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class ConflictError(AppError):
    status_code = 409
    error_code = "conflict"


class RateLimitError(AppError):
    status_code = 429
    error_code = "rate_limit_exceeded"


class AlreadyExistsError(ConflictError):
    error_code = "already_exists"


class InvalidCredentialsError(AuthenticationError):
    """Wrong password and unknown email share this error and its message."""

    error_code = "invalid_credentials"

    def __init__(self, message: str = "Invalid credentials", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class InvalidOrExpiredCodeError(ValidationError):
    """Unknown email, wrong code and expired code share this error."""

    error_code = "invalid_or_expired_code"

    def __init__(
        self, message: str = "Invalid or expired verification code", **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)


class ThrottledError(RateLimitError):
    """A verification code was issued less than one cooldown window ago."""

    error_code = "throttled"

    def __init__(self, seconds_remaining: int, message: Optional[str] = None) -> None:
        super().__init__(
            message
            or f"Please wait {seconds_remaining} seconds before requesting a new code",
            details={"seconds_remaining": seconds_remaining},
        )
        self.seconds_remaining = seconds_remaining

    def headers(self) -> Optional[dict[str, str]]:
        return {"Retry-After": str(self.seconds_remaining)}


class DispatchFailedError(AppError):
    status_code = 502
    error_code = "dispatch_failed"


class EnrichmentFailedError(AppError):
    status_code = 502
    error_code = "enrichment_failed"


class UpstreamTimeoutError(AppError):
    status_code = 504
    error_code = "upstream_timeout"


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers()
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        return JSONResponse(
            status_code=500,
            content={"error": "An internal server error occurred.", "code": "internal_error"},
        )
