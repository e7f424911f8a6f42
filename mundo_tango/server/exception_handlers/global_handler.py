"""
Exception handlers for the FastAPI application.

``MundoTangoError`` subclasses raised by the services carry their HTTP
status code and are answered with ``{"detail", "error_type"}``. Every other
unhandled exception is logged with its request context and traceback and
answered with a 500 that includes an ``error_id`` for support requests.
"""

import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mundo_tango.core.errors import MundoTangoError
from mundo_tango.core.logging_config import get_logger
from mundo_tango.core.monitoring import log_error

logger = get_logger(__name__)


async def domain_exception_handler(request: Request, exc: MundoTangoError) -> JSONResponse:
    """Answer an expected domain failure with its mapped status code."""
    logger.info(
        f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}",
        extra={"method": request.method, "path": request.url.path, "status_code": exc.status_code},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error_type": type(exc).__name__},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Log an unhandled exception with full context and hide its details from the client.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with a generic message and the error id
    """
    error_id = id(exc)

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {exc}",
        exc_info=exc,
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
            "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        },
    )
    log_error(type(exc).__name__, str(exc), {"error_id": error_id, "path": request.url.path})

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register the exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(MundoTangoError, domain_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")
