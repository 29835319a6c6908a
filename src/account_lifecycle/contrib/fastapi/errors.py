"""Exception handlers rendering the JSON error envelope.

Every error response has the shape::

    {
        "success": false,
        "timestamp": "...",
        "path": "/auth/login",
        "error": {"status": 401, "message": "...", "errorCode": "...", "errors": {...}}
    }

``errorCode`` and ``errors`` are omitted when empty. 5xx responses are
logged at ERROR, 4xx at WARNING.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...exceptions import (
    AccountError,
    ConflictError,
    ExpiredError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[AccountError], int] = {
    InvalidInputError: 400,
    ExpiredError: 400,
    UnauthorizedError: 401,
    NotFoundError: 404,
    ConflictError: 409,
    InternalError: 500,
}


def status_for(exc: AccountError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]  # type: ignore[index]
    return 500


def error_response(
    request: Request,
    status: int,
    message: str,
    *,
    error_code: str | None = None,
    errors: dict[str, list[str]] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    error: dict[str, Any] = {"status": status, "message": message}
    if error_code:
        error["errorCode"] = error_code
    if errors:
        error["errors"] = errors

    path = request.url.path
    if status >= 500:
        logger.error("%s %s -> %s: %s", request.method, path, status, message)
    else:
        logger.warning("%s %s -> %s: %s", request.method, path, status, message)

    return JSONResponse(
        status_code=status,
        content={
            "success": False,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "path": path,
            "error": error,
        },
        headers=headers,
    )


async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    status = status_for(exc)
    headers = {"WWW-Authenticate": "Bearer"} if status == 401 else None
    errors = exc.errors if isinstance(exc, InvalidInputError) else None
    return error_response(
        request, status, exc.message, error_code=exc.code, errors=errors, headers=headers
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = [str(p) for p in error.get("loc", ()) if p != "body"]
        errors.setdefault(".".join(loc) or "body", []).append(
            error.get("msg", "validation error")
        )
    return error_response(
        request, 400, "Validation failed", error_code="validation_failed", errors=errors
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return error_response(
        request, exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None)
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(request, 500, "Internal server error")


def install_exception_handlers(app: FastAPI) -> None:
    """Register the envelope handlers on *app*."""
    app.add_exception_handler(AccountError, account_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__: list[str] = [
    "STATUS_BY_ERROR",
    "error_response",
    "install_exception_handlers",
    "status_for",
]
