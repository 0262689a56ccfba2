"""
Exception handlers.

Every error response carries `detail` plus an error `toast` the client can
show as-is. Unhandled exceptions are logged with an error id that is also
returned to the client.
"""

import uuid

import logfire
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.exceptions import AdminError
from services.notifications import NotificationBuilder


def http_error(exc: AdminError) -> HTTPException:
    """Translate a service-layer error into the matching HTTPException."""
    return HTTPException(status_code=exc.status_code, detail=exc.message)


def error_toast(message: str) -> dict:
    return NotificationBuilder.make(message).error().toast()


def _toast_for(detail) -> dict:
    if isinstance(detail, str) and detail.strip():
        return error_toast(detail)
    return error_toast("Request failed")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "toast": _toast_for(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def admin_error_handler(request: Request, exc: AdminError) -> JSONResponse:
    logfire.info(
        "Request rejected",
        path=request.url.path,
        error_type=type(exc).__name__,
        status_code=exc.status_code,
        detail=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "toast": error_toast(exc.message)},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    error_id = str(uuid.uuid4())
    logfire.error(
        "Unhandled exception",
        error_id=error_id,
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
            "toast": error_toast("Something went wrong"),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(AdminError, admin_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
