"""Global exception handlers.

Domain errors become ``{"error": {code, message, request_id, details?}}``
responses with a status picked from the error class:

- ValidationAppError (and bare AppError) -> 400
- AuthenticationAppError -> 403
- CooldownAppError -> 429, with Retry-After when the details carry it
- VideoProviderAppError -> 502

Framework errors use the same envelope: HTTPException keeps its status and
headers, and request validation failures become 400 ``invalid_input``.
Anything else is logged and answered with a generic 500.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import (
    AppError,
    AuthenticationAppError,
    CooldownAppError,
    VideoProviderAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (AuthenticationAppError, 403),
    (CooldownAppError, 429),
    (VideoProviderAppError, 502),
)

_CODE_BY_HTTP_STATUS: dict[int, str] = {
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    413: "file_too_large",
    429: "rate_limit_exceeded",
}


def _status_for(exc: AppError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _error_response(
    status_code: int,
    code: str,
    message: str,
    details: dict | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body: dict = {"code": code, "message": message, "request_id": get_request_id()}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content={"error": body}, headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    status_code = _status_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "route": request.url.path,
            "has_details": bool(exc.details),
        },
    )

    headers = None
    if exc.details and "retry_after" in exc.details:
        headers = {"Retry-After": str(exc.details["retry_after"])}

    return _error_response(status_code, exc.code, exc.message, dict(exc.details or {}), headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _CODE_BY_HTTP_STATUS.get(exc.status_code, "http_error")

    logger.warning(
        "http_error_handled",
        extra={"error_code": code, "status_code": exc.status_code, "route": request.url.path},
    )

    return _error_response(
        exc.status_code,
        code,
        str(exc.detail),
        headers=dict(exc.headers) if exc.headers else None,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]

    logger.warning(
        "request_validation_failed",
        extra={"route": request.url.path, "error_count": len(errors)},
    )

    return _error_response(400, "invalid_input", "Invalid input data", {"context": {"errors": errors}})


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log the failure, never echo it to the caller."""
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "route": request.url.path,
            "method": request.method,
        },
    )

    return _error_response(
        500,
        "internal_server_error",
        "An unexpected error occurred. Please try again later.",
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
