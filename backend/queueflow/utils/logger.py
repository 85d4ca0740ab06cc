"""
Structured JSON logging

Every record is one JSON object carrying the request correlation id and,
when passed via ``extra=``, the queue identifiers listed in LOG_FIELDS.
"""
import json
import logging
import os
import sys
from contextvars import ContextVar, Token
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from ..config.settings import Settings, settings as default_settings
from .time import format_iso, utc_now


correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

LOG_FIELDS = (
    "ticket_id",
    "counter_id",
    "agent_id",
    "service_id",
    "event_type",
    "operation",
    "error_code",
)

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Library loggers that are too chatty at INFO
QUIET_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "apscheduler": logging.WARNING,
}


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON line"""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": format_iso(utc_now()),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            payload["correlation_id"] = correlation_id

        payload.update({
            name: getattr(record, name) for name in LOG_FIELDS if hasattr(record, name)
        })

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def _rotating_handler(path: str, formatter: logging.Formatter, level: int = logging.NOTSET) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(config: Optional[Settings] = None) -> None:
    """
    Configure the root logger for the service.

    Writes JSON to stdout, to ``app.log`` and (ERROR and above) to
    ``error.log`` under ``config.logs_path``. Safe to call more than once:
    existing root handlers are replaced.
    """
    config = config or default_settings
    os.makedirs(config.logs_path, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(getattr(logging, config.log_level.upper()))
    root.handlers.clear()

    formatter = JsonFormatter()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)
    root.addHandler(_rotating_handler(os.path.join(config.logs_path, "app.log"), formatter))
    root.addHandler(
        _rotating_handler(os.path.join(config.logs_path, "error.log"), formatter, logging.ERROR)
    )

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_correlation_id(correlation_id: str) -> Token:
    """Bind a correlation id to the current context; returns the reset token"""
    return correlation_id_var.set(correlation_id)


def reset_correlation_id(token: Token) -> None:
    correlation_id_var.reset(token)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()
