"""
Typed API errors and the FastAPI handlers that render them.

    ValidationError          400  validation_error
    AuthenticationError      401  authentication_error
    ForbiddenError           403  forbidden
    NotFoundError            404  not_found
    ConflictError            409  conflict
    RateLimitError           429  rate_limit_exceeded
    ExternalServiceError     502  external_service_error
    ServiceUnavailableError  503  service_unavailable

Every error body has the shape {"error", "code", ["field"], ["details"]}.
FastAPI's own request validation failures are folded into the same 400
shape. Anything else is logged with its traceback and answered with a
generic 500; Sentry, when initialised, captures it through its FastAPI
integration.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.logging import get_logger

log = get_logger(__name__)

INTERNAL_ERROR_BODY = {
    "error": "An internal server error occurred.",
    "code": "internal_error",
}


class AppError(Exception):
    status_code: int = 500
    error_code: str = "internal_error"
    default_message: str = "Request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        self.message = message or self.default_message
        self.field = field
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            body["field"] = self.field
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"
    default_message = "Invalid request"


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"
    default_message = "Authentication failed"


class ForbiddenError(AppError):
    status_code = 403
    error_code = "forbidden"
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    error_code = "conflict"
    default_message = "Already exists"


class RateLimitError(AppError):
    status_code = 429
    error_code = "rate_limit_exceeded"
    default_message = "Too many requests"


class ExternalServiceError(AppError):
    """An upstream provider (mail, Google, Gemini) failed or refused the call."""

    status_code = 502
    error_code = "external_service_error"
    default_message = "Upstream service error"


class ServiceUnavailableError(AppError):
    """A feature is switched off because its credentials are not configured."""

    status_code = 503
    error_code = "service_unavailable"
    default_message = "Service unavailable"


def _render(exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def _from_request_validation(exc: RequestValidationError) -> ValidationError:
    errors = exc.errors()
    if not errors:
        return ValidationError()
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    return ValidationError(first.get("msg") or None, field=".".join(loc) or None)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            log.warning(
                "service_error",
                path=request.url.path,
                code=exc.error_code,
                error=exc.message,
            )
        return _render(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _render(_from_request_validation(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        log.error(
            "unhandled_exception",
            path=request.url.path,
            error_type=type(exc).__name__,
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)
