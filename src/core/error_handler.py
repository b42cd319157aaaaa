"""Centralized error handling and logging for the fact-checking API.

This module provides:
- Global exception handler mapping provider, parse and domain errors to HTTP
- Structured logging with correlation IDs and credential redaction
- Environment-aware error responses (generic in production, detailed in dev)
"""

import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pythonjsonlogger.json import JsonFormatter
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from core.config import get_settings
from core.exceptions import DomainError, SessionNotFoundError
from core.security_config import get_allowed_error_fields, is_sensitive_key
from schemas.api import ErrorResponse
from services.fact_check.exceptions import ResultParseError
from services.providers.exceptions import ProviderError


_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

logger = logging.getLogger(__name__)

# error_code -> HTTP status for upstream provider failures
PROVIDER_STATUS_CODES: dict[str, int] = {
    "not_configured": 503,
    "auth_failed": 502,
    "rate_limited": 429,
    "provider_error": 502,
    "network_error": 502,
    "timeout": 504,
}


def get_correlation_id() -> str:
    """Get or create a correlation ID for request tracing."""
    correlation_id: str | None = _correlation_id_var.get()
    if not correlation_id:
        new_id = str(uuid.uuid4())
        _correlation_id_var.set(new_id)
        return new_id
    return correlation_id


def set_correlation_id(correlation_id: str | None) -> None:
    _correlation_id_var.set(correlation_id)


class StructuredLogger:
    """Logger that prefixes correlation IDs and redacts credentials from extras."""

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)

    def _log_with_context(
        self,
        level: int,
        message: str,
        extra_data: dict[str, Any] | None = None,
        exc_info: bool = False,
    ) -> None:
        correlation_id = get_correlation_id()
        log_data = {
            "correlation_id": correlation_id,
            **self.sanitize(extra_data or {}),
        }
        if get_settings().ENVIRONMENT == "production":
            # JsonFormatter merges `extra` keys into the emitted object
            self.logger.log(level, message, extra=log_data, exc_info=exc_info)
        else:
            self.logger.log(
                level,
                f"[{correlation_id}] {message}",
                extra={"structured_data": log_data},
                exc_info=exc_info,
            )

    def sanitize(self, data: Any) -> Any:
        """Recursively replace values under sensitive keys with a marker."""
        if isinstance(data, dict):
            return {
                key: "[REDACTED]"
                if isinstance(key, str) and is_sensitive_key(key)
                else self.sanitize(value)
                for key, value in data.items()
            }
        if isinstance(data, list | tuple):
            return [self.sanitize(item) for item in data]
        return data

    def info(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.ERROR, message, kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.ERROR, message, kwargs, exc_info=True)


structured_logger = StructuredLogger(__name__)


class ExceptionNormalizationMiddleware(BaseHTTPMiddleware):
    """Catch any uncaught Exception and delegate to global_exception_handler."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:  # noqa: BLE001
            return await global_exception_handler(request, exc)


def _build_error_response(
    *,
    correlation_id: str,
    error_type: str,
    message: str,
    environment: str,
    details: dict[str, Any] | None = None,
    traceback_str: str | None = None,
    exception_type: str | None = None,
    validation_errors: Any | None = None,
    status_code: int = 500,
) -> JSONResponse:
    """Construct a sanitized JSON error response respecting environment rules."""
    allowed_fields = get_allowed_error_fields(environment)

    error_body: dict[str, Any] = {
        "correlation_id": correlation_id,
        "type": error_type,
    }
    if "details" in allowed_fields and details:
        error_body["details"] = details
    if "traceback" in allowed_fields and traceback_str:
        error_body["traceback"] = traceback_str
    if "exception_type" in allowed_fields and exception_type:
        error_body["exception_type"] = exception_type
    if "validation_errors" in allowed_fields and validation_errors is not None:
        error_body["validation_errors"] = validation_errors

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            message=message,
            error=error_body,
            success=False,
        ).model_dump(mode="json"),
    )


def _validation_errors(exc: ValidationError | RequestValidationError) -> list[Any]:
    errors = exc.errors()
    # ctx may hold the raw ValueError, which is not JSON serializable
    return [
        {k: v for k, v in error.items() if k != "ctx"} for error in errors
    ]


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render any exception as the standard error envelope.

    Provider errors keep their human-readable message (it never contains
    credentials) so clients can show it as-is.
    """
    environment = get_settings().ENVIRONMENT
    correlation_id = get_correlation_id()

    if isinstance(exc, StarletteHTTPException):
        detail = getattr(exc, "detail", "An error occurred")
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="http_error",
            message=detail if isinstance(detail, str) else "An HTTP error occurred",
            environment=environment,
            details={"detail": detail},
            exception_type=exc.__class__.__name__,
            status_code=exc.status_code,
        )

    if isinstance(exc, ValidationError | RequestValidationError):
        validation_errors = _validation_errors(exc)
        structured_logger.warning(
            "Validation error", validation_errors=validation_errors
        )
        first = validation_errors[0].get("msg") if validation_errors else None
        if isinstance(first, str):
            first = first.removeprefix("Value error, ")
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="validation_error",
            message=first or "Invalid request data provided",
            environment=environment,
            validation_errors=validation_errors,
            status_code=422,
        )

    if isinstance(exc, ProviderError):
        structured_logger.warning(
            "Provider error",
            provider=exc.provider,
            error_code=exc.error_code,
        )
        return _build_error_response(
            correlation_id=correlation_id,
            error_type=exc.error_code,
            message=exc.message,
            environment=environment,
            details={"provider": exc.provider},
            status_code=PROVIDER_STATUS_CODES.get(exc.error_code, 502),
        )

    if isinstance(exc, ResultParseError):
        structured_logger.warning("Result parse error", error_code=exc.error_code)
        return _build_error_response(
            correlation_id=correlation_id,
            error_type=exc.error_code,
            message=exc.message,
            environment=environment,
            status_code=502,
        )

    if isinstance(exc, SessionNotFoundError):
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="not_found",
            message=str(exc) or "Session not found",
            environment=environment,
            status_code=404,
        )

    if isinstance(exc, DomainError):
        structured_logger.warning(
            "Domain error", error_type=exc.__class__.__name__, domain_message=str(exc)
        )
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="domain_error",
            message=str(exc) or "Domain error",
            environment=environment,
            status_code=400,
        )

    if isinstance(exc, SQLAlchemyError):
        structured_logger.exception("Database error", exception_type=type(exc).__name__)
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="database_error",
            message="A database error occurred",
            environment=environment,
        )

    structured_logger.exception(
        "Unhandled exception", exception_type=exc.__class__.__name__, error=str(exc)
    )
    traceback_str: str | None = None
    if environment != "production":
        traceback_str = "".join(traceback.format_exception(exc)).strip()

    return _build_error_response(
        correlation_id=correlation_id,
        error_type="internal_server_error",
        message="An internal error occurred",
        environment=environment,
        traceback_str=traceback_str,
        exception_type=exc.__class__.__name__,
    )


def _resolve_log_level(environment: str, override: str | None) -> int:
    if override:
        level = logging.getLevelName(override.upper())
        if isinstance(level, int):
            return level
    return logging.DEBUG if environment == "development" else logging.INFO


def setup_logging() -> None:
    """Configure root logging once: readable text in dev, JSON in production."""
    settings = get_settings()
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    log_level = _resolve_log_level(settings.ENVIRONMENT, settings.LOG_LEVEL)
    formatter: logging.Formatter
    if settings.ENVIRONMENT == "production":
        formatter = JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "asctime": "timestamp"},
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)
    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    if settings.ENVIRONMENT == "production":
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    # Provider clients log full request lines at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
