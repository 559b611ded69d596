"""Error Handlers — every failure leaves the API as one {"error": {...}} envelope.

Invariants:
    - AnalyticsError → its own code, category, severity and HTTP status
    - RequestValidationError → 400 VALIDATION_ERROR, first field problem in the message
    - Anything else → 500 INTERNAL_ERROR with no internal detail in the body
    - A retry hint on the error context becomes a Retry-After header

Design Decisions:
    - Handlers live outside main.py so the app module only wires routers (ADR: import fan-out < 10)
    - 4xx logged at warning, 5xx at error: client mistakes are not incidents
    - Field paths drop the "body"/"query"/"path" prefix so clients see their own key names
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import AnalyticsError, ErrorSeverity, ValidationFailedError

logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AnalyticsError, handle_analytics_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


async def handle_analytics_error(request: Request, exc: AnalyticsError) -> JSONResponse:
    log = logger.error if exc.http_status >= 500 else logger.warning
    extra = {
        "error_code": exc.code,
        "path": request.url.path,
        "project_id": exc.context.project_id,
        "user_id": exc.context.user_id,
        "feature": exc.context.feature,
    }
    if isinstance(exc, ValidationFailedError) and exc.field:
        extra["field"] = exc.field
    log(f"{exc.code}: {exc.message}", extra=extra)

    headers = None
    if exc.context.retry_after_ms:
        headers = {"Retry-After": str(math.ceil(exc.context.retry_after_ms / 1000))}
    return JSONResponse(
        status_code=exc.http_status, content=exc.to_response(), headers=headers,
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {"field": field_path(e["loc"]), "message": e["msg"], "type": e["type"]}
        for e in exc.errors()
    ]
    logger.warning(
        f"Validation error on {request.url.path}: {details}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    message = "Invalid request data"
    if details:
        first = details[0]
        message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_envelope("VALIDATION_ERROR", message, "validation", ErrorSeverity.ERROR, details),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}",
        exc_info=True, extra={"path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope(
            "INTERNAL_ERROR", "An unexpected error occurred", "internal", ErrorSeverity.CRITICAL,
        ),
    )


def field_path(loc) -> str:
    """('body', 'goals', 0, 'url') → 'goals.0.url'."""
    parts = list(loc)
    if parts and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(str(p) for p in parts)


def _envelope(
    code: str, message: str, category: str, severity: ErrorSeverity, details: list | None = None,
) -> dict:
    error = {
        "code": code,
        "message": message,
        "category": category,
        "severity": severity.value,
    }
    if details is not None:
        error["details"] = details
    return {"error": error}
