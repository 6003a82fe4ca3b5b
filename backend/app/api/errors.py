"""Exception handlers rendering service failures as JSON envelopes."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import Internal, InvalidInput, ServiceError
from app.monitoring.metrics import storage_failures_total

logger = logging.getLogger(__name__)


def error_body(code: str, detail: str, field: str | None = None) -> dict:
    return {"error": code, "detail": detail, "field": field}


def _location_field(loc: tuple) -> str | None:
    # loc looks like ("body", "target", "user_ids", 0) or ("query", "limit")
    parts = [str(item) for item in loc[1:] if not isinstance(item, int)]
    return ".".join(parts) or None


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.detail, exc.field),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = _location_field(tuple(first.get("loc", ())))
    detail = first.get("msg") or InvalidInput.default_detail
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(InvalidInput.code, detail, field),
    )


async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    storage_failures_total.inc(operation="request")
    logger.exception("Unhandled storage failure on %s %s", request.method, request.url.path)
    error = Internal()
    return JSONResponse(status_code=error.status_code, content=error_body(error.code, error.detail))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)
