"""
Logging setup for the Mundo Tango backend.

``setup_logging`` is called once when the server module is imported. It
replaces whatever handlers the root logger carries with one console handler
and, when file logging is switched on, a ``mundo_tango.log`` file handler.
The root logger itself stays at DEBUG; each handler filters by its own level.

Package levels in ``MODULE_LOG_LEVELS`` let the request handlers log at DEBUG
while the scoring modules and the database layer stay at INFO.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

LOG_FILE_NAME = "mundo_tango.log"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SIMPLE_FORMAT = "%(levelname)s %(name)s: %(message)s"

DETAILED_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(filename)s:%(lineno)d] %(message)s"

JSON_FORMAT = (
    '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"where": "%(filename)s:%(lineno)d", "message": "%(message)s"}'
)

FORMATS: Dict[str, str] = {
    "simple": SIMPLE_FORMAT,
    "detailed": DETAILED_FORMAT,
    "json": JSON_FORMAT,
}

MODULE_LOG_LEVELS: Dict[str, str] = {
    "mundo_tango": "INFO",
    "mundo_tango.algorithms": "INFO",
    "mundo_tango.core.database": "INFO",
    "mundo_tango.server": "INFO",
    "mundo_tango.server.api": "DEBUG",
    "mundo_tango.server.services": "DEBUG",
    # third party
    "sqlalchemy": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "sqlalchemy.pool": "WARNING",
    "aiosqlite": "WARNING",
    "httpx": "WARNING",
    "asyncio": "WARNING",
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
}


def _truthy(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


def _load_defaults() -> Dict[str, object]:
    """Logging defaults from the application settings.

    The settings import happens here rather than at module level so that
    modules imported by the settings module can still use ``get_logger``.
    When the settings cannot be built the raw environment is used instead.
    """
    try:
        from mundo_tango.server.core.config import settings
    except Exception:
        return {
            "level": os.getenv("MUNDO_TANGO_LOG_LEVEL", "INFO"),
            "format": os.getenv("LOG_FORMAT", "detailed"),
            "file_dir": os.getenv("LOG_FILE_DIR", "logs"),
            "file_enabled": _truthy(os.getenv("ENABLE_FILE_LOGGING", "false")),
        }
    return {
        "level": settings.log_level,
        "format": settings.log_format,
        "file_dir": settings.log_file_dir,
        "file_enabled": settings.enable_file_logging,
    }


_defaults = _load_defaults()
LOG_LEVEL = str(_defaults["level"]).upper()
LOG_FORMAT = str(_defaults["format"])
LOG_FILE_DIR = str(_defaults["file_dir"])
ENABLE_FILE_LOGGING = bool(_defaults["file_enabled"])


def resolve_format(log_format: str) -> str:
    """Format string for ``simple``, ``detailed`` or ``json``; unknown names get ``detailed``."""
    return FORMATS.get(log_format, DETAILED_FORMAT)


def _attach(root_logger: logging.Logger, handler: logging.Handler, level, formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = True,
) -> None:
    """
    Configure the root logger.

    Args:
        log_level: Console level name; defaults to ``MUNDO_TANGO_LOG_LEVEL``.
        log_format: ``simple``, ``detailed`` or ``json``; defaults to ``LOG_FORMAT``.
        enable_file: Allow the file handler. It is only added when
            ``ENABLE_FILE_LOGGING`` is also on.
    """
    level = (log_level or LOG_LEVEL).upper()
    format_name = log_format or LOG_FORMAT
    formatter = logging.Formatter(resolve_format(format_name), datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    _attach(root_logger, logging.StreamHandler(), level, formatter)

    write_file = enable_file and ENABLE_FILE_LOGGING
    if write_file:
        log_dir = Path(LOG_FILE_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        _attach(root_logger, logging.FileHandler(log_dir / LOG_FILE_NAME), logging.DEBUG, formatter)

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.info("Logging configured: level=%s format=%s file=%s", level, format_name, write_file)


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name`` (pass ``__name__``)."""
    return logging.getLogger(name)
