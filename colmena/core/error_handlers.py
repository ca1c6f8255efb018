"""
Exception handlers.

Render every failure as a single JSON envelope:
``{"status": "error", "status_code": ..., "message": ..., "errors": [...]}``
where ``errors`` is only present for input validation failures.
"""
import logging
from typing import Any, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from colmena.core.config import settings
from colmena.core.errors import AppError, ValidationError

logger = logging.getLogger(__name__)


def error_body(status_code: int, message: str, errors: Optional[List[Any]] = None) -> dict:
    body = {"status": "error", "status_code": status_code, "message": message}
    if errors is not None:
        body["errors"] = errors
    return body


def _field_name(loc) -> str:
    # loc looks like ("body", "visitor_name") or ("path", "visit_id")
    parts = [str(p) for p in loc[1:]] or [str(p) for p in loc]
    return ".".join(parts)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(f"{exc.status_code} - {exc.message} - {request.url.path} - {request.method}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message, exc.errors),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": _field_name(err.get("loc", ())), "message": err.get("msg", "Invalid value")}
        for err in exc.errors()
    ]
    return await app_error_handler(request, ValidationError(errors=errors))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = str(exc.detail)
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = f"Cannot {request.method} {request.url.path}"
    logger.warning(f"{exc.status_code} - {message} - {request.url.path} - {request.method}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, message),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"500 - {exc} - {request.url.path} - {request.method}", exc_info=exc)
    message = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(status.HTTP_500_INTERNAL_SERVER_ERROR, message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
