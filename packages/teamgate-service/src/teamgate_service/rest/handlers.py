"""Exception handlers rendering the uniform error body.

Every error response has the shape::

    {"error": str, "code": str, "details"?: object, "timestamp": str,
     "path": str, "request_id"?: str}
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from teamgate_service.errors import (
    AccessDenied,
    DatabaseError,
    InternalError,
    TeamgateError,
    ValidationError,
)

log = structlog.get_logger(__name__)


def error_body(request: Request, exc: TeamgateError) -> dict[str, Any]:
    body: dict[str, Any] = {
        "error": exc.message,
        "code": exc.code.value,
        "timestamp": datetime.now(UTC).isoformat(),
        "path": request.url.path,
    }
    if exc.details:
        body["details"] = exc.details
    request_id = request.headers.get("x-request-id")
    if request_id:
        body["request_id"] = request_id
    return body


def error_response(request: Request, exc: TeamgateError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(request, exc))


async def teamgate_error_handler(request: Request, exc: TeamgateError) -> JSONResponse:
    log_kw = {"code": exc.code.value, "status": exc.status_code, "path": request.url.path}
    if isinstance(exc, AccessDenied):
        log_kw["reason"] = exc.reason
    if exc.status_code >= 500:
        log.error("request_failed", error=exc.message, **log_kw)
    else:
        log.info("request_rejected", **log_kw)
    return error_response(request, exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return error_response(request, ValidationError("Invalid request", {"errors": errors}))


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    log.error("database_error", path=request.url.path, error=str(exc))
    return error_response(request, DatabaseError(original=exc))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", path=request.url.path)
    return error_response(request, InternalError())


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TeamgateError, teamgate_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
