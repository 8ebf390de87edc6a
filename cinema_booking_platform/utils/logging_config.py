"""
Logging configuration for the Cinema Booking Platform.

Everything goes through the standard library: ``setup_logging`` installs a
``dictConfig`` with a request-id filter and an optional JSON formatter, and
modules log via ``logging.getLogger(__name__)``.
"""

import json
import logging
import logging.config
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import get_settings

APP_LOGGER = "cinema_booking_platform"

# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName', 'taskName',
    'processName', 'process', 'message', 'exc_info',
    'exc_text', 'stack_info', 'request_id'
}


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    enable_json_logging: bool = False,
) -> None:
    """
    Configure application, server, database and worker loggers.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path of a rotating log file
        enable_json_logging: Emit one JSON object per record
    """
    settings = get_settings()
    formatter = "json" if enable_json_logging else "detailed"

    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": formatter,
            "stream": sys.stdout,
            "filters": ["request_id"],
        }
    }

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": formatter,
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "filters": ["request_id"],
        }

    handler_names = list(handlers)

    def logger_config(level: str) -> Dict[str, Any]:
        return {"level": level, "handlers": list(handler_names), "propagate": False}

    loggers = {
        APP_LOGGER: logger_config(log_level),
        "uvicorn": logger_config("INFO"),
        "uvicorn.access": logger_config("INFO"),
        "fastapi": logger_config("INFO"),
        "sqlalchemy.engine": logger_config("INFO" if settings.database_echo else "WARNING"),
        "sqlalchemy.pool": logger_config("WARNING"),
        "celery": logger_config("INFO"),
        "httpx": logger_config("WARNING"),
    }

    if settings.environment == "production":
        error_file = log_file.replace(".log", "_errors.log") if log_file else "logs/errors.log"
        Path(error_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["error_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "ERROR",
            "formatter": formatter,
            "filename": error_file,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 10,
            "filters": ["request_id"],
        }
        loggers[APP_LOGGER]["handlers"].append("error_file")

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": (
                    "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d "
                    "[%(request_id)s] %(message)s"
                ),
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": f"{APP_LOGGER}.utils.logging_config.JSONFormatter",
            },
        },
        "filters": {
            "request_id": {
                "()": f"{APP_LOGGER}.utils.logging_config.RequestIDFilter",
            },
        },
        "handlers": handlers,
        "loggers": loggers,
        "root": {
            "level": log_level,
            "handlers": list(handler_names),
        },
    })


class RequestIDFilter(logging.Filter):
    """Attach the current request id (or a placeholder) to every record."""

    def filter(self, record):
        if not getattr(record, "request_id", None):
            from ..middleware.logging import request_id_var
            record.request_id = request_id_var.get()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record; user-supplied extras are nested under ``extra``."""

    def format(self, record):
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "at": f"{record.module}.{record.funcName}:{record.lineno}",
            "request_id": getattr(record, "request_id", None),
        }

        extra = {key: value for key, value in vars(record).items() if key not in _RESERVED_ATTRS}
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def log_business_event(event_type: str, details: Dict[str, Any], user_id: Optional[str] = None) -> None:
    """Emit a booking lifecycle event on the ``<app>.business`` logger."""
    logging.getLogger(f"{APP_LOGGER}.business").info(
        "Business event %s", event_type,
        extra={"event": event_type, "actor": user_id, **details},
    )
