"""
Monitoring and Tracing Configuration Module.

This module wires optional Pydantic Logfire instrumentation into the API
server and exposes small helpers that record request and business events
(donations, purchases, fraud reviews) both to the standard logger and, when
enabled, to Logfire.

Logfire is switched on with ``LOGFIRE_ENABLED=true`` plus a ``LOGFIRE_TOKEN``.
Without them every helper degrades to plain logging.
"""

import logging
import os
from typing import Any, Optional

from fastapi import FastAPI

logger = logging.getLogger(__name__)

LOGFIRE_ENABLED = os.getenv("LOGFIRE_ENABLED", "false").lower() in ("true", "1", "yes")
LOGFIRE_TOKEN = os.getenv("LOGFIRE_TOKEN", "")
LOGFIRE_ENVIRONMENT = os.getenv("LOGFIRE_ENVIRONMENT", "development")
LOGFIRE_SERVICE_NAME = os.getenv("LOGFIRE_SERVICE_NAME", "mundo-tango-api")
LOGFIRE_SERVICE_VERSION = os.getenv("LOGFIRE_SERVICE_VERSION", "0.1.0")
LOGFIRE_SAMPLE_RATE = float(os.getenv("LOGFIRE_SAMPLE_RATE", "1.0"))

LOGFIRE_TRACE_SQLALCHEMY = os.getenv("LOGFIRE_TRACE_SQLALCHEMY", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_FASTAPI = os.getenv("LOGFIRE_TRACE_FASTAPI", "true").lower() in ("true", "1", "yes")


def is_logfire_active() -> bool:
    """Whether Logfire should receive events."""
    return LOGFIRE_ENABLED and bool(LOGFIRE_TOKEN)


def initialize_logfire(app: FastAPI | None = None) -> None:
    """
    Initialize Logfire for monitoring and tracing.

    Instruments SQLAlchemy and, when ``app`` is given, the FastAPI endpoints.
    Does nothing unless ``LOGFIRE_ENABLED`` is set and a token is present.

    Args:
        app: FastAPI application instance for endpoint instrumentation (optional).
    """
    if not LOGFIRE_ENABLED:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return

    if not LOGFIRE_TOKEN:
        logger.warning("Logfire is enabled but LOGFIRE_TOKEN is not set. Monitoring will not work.")
        return

    import logfire

    logfire.configure(
        token=LOGFIRE_TOKEN,
        service_name=LOGFIRE_SERVICE_NAME,
        service_version=LOGFIRE_SERVICE_VERSION,
        environment=LOGFIRE_ENVIRONMENT,
        sampling=logfire.SamplingOptions(head=LOGFIRE_SAMPLE_RATE),
    )

    if LOGFIRE_TRACE_SQLALCHEMY:
        try:
            logfire.instrument_sqlalchemy()
            logger.info("Logfire: SQLAlchemy instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument SQLAlchemy: {e}")

    if LOGFIRE_TRACE_FASTAPI and app is not None:
        try:
            logfire.instrument_fastapi(app=app)
            logger.info("Logfire: FastAPI instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument FastAPI: {e}")

    logger.info(f"Logfire monitoring initialized: environment={LOGFIRE_ENVIRONMENT}, service={LOGFIRE_SERVICE_NAME}")


def _emit(message: str, level: str = "info", **attributes: Any) -> None:
    if not is_logfire_active():
        return
    try:
        import logfire

        getattr(logfire, level)(message, **attributes)
    except Exception:
        logger.debug(f"Could not send event to Logfire: {message}")


def log_api_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """
    Log an API request with performance metrics.

    Args:
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        duration_ms: Request duration in milliseconds
    """
    logger.debug(f"{method} {path} -> {status_code} ({duration_ms:.2f}ms)")
    _emit("API request completed", method=method, path=path, status_code=status_code, duration_ms=duration_ms)


def log_business_event(event: str, **attributes: Any) -> None:
    """
    Record a domain event such as a donation, purchase or moderation decision.

    Args:
        event: Short event name, e.g. ``donation.received``
        **attributes: Structured context for the event
    """
    logger.info(f"{event}: {attributes}")
    _emit(event, **attributes)


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    logger.error(f"{error_type}: {error_message}")
    _emit(f"{error_type}: {error_message}", level="error", **(context or {}))
