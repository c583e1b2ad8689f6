"""Structured logging configuration for the campaign pipeline."""

import json
import logging
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

# Correlation fields emitted first, in this order, when present on a record
CORRELATION_FIELDS = ("campaign_id", "stage", "handoff_id", "trace_id", "duration_ms")

_RESERVED = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message",
}


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def __init__(
        self,
        include_timestamp: bool = True,
        include_level: bool = True,
        include_logger: bool = True,
    ):
        super().__init__()
        self._include_timestamp = include_timestamp
        self._include_level = include_level
        self._include_logger = include_logger

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {}

        if self._include_timestamp:
            log_data["timestamp"] = datetime.now(timezone.utc).isoformat()

        if self._include_level:
            log_data["level"] = record.levelname

        if self._include_logger:
            log_data["logger"] = record.name

        log_data["message"] = record.getMessage()

        for name in CORRELATION_FIELDS:
            if hasattr(record, name):
                log_data[name] = _plain(getattr(record, name))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Any other scalar extras
        for key, value in record.__dict__.items():
            if key.startswith("_") or key in _RESERVED or key in log_data:
                continue
            value = _plain(value)
            if isinstance(value, (str, int, float, bool, type(None))):
                log_data[key] = value

        return json.dumps(log_data)


class ContextLogger:
    """Logger that stamps every record with bound correlation fields."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger
        self._context: Dict[str, Any] = {}

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self._context)

    def with_context(self, **kwargs) -> "ContextLogger":
        """Create a new logger with additional context."""
        new_logger = ContextLogger(self._logger)
        new_logger._context = {**self._context, **kwargs}
        return new_logger

    def _log(self, level: int, msg: str, **kwargs):
        extra = {**self._context, **kwargs}
        self._logger.log(level, msg, extra=extra)

    def debug(self, msg: str, **kwargs):
        self._log(logging.DEBUG, msg, **kwargs)

    def info(self, msg: str, **kwargs):
        self._log(logging.INFO, msg, **kwargs)

    def warning(self, msg: str, **kwargs):
        self._log(logging.WARNING, msg, **kwargs)

    def error(self, msg: str, **kwargs):
        self._log(logging.ERROR, msg, **kwargs)

    def exception(self, msg: str, **kwargs):
        self._logger.exception(msg, extra={**self._context, **kwargs})


def configure_logging(
    log_format: str = "json",
    log_level: str = "INFO",
    logger_name: Optional[str] = "campaign_pipeline",
) -> logging.Logger:
    """
    Configure logging for the pipeline.

    Args:
        log_format: "json" or "text"
        log_level: Logging level name
        logger_name: Logger to configure (None for root)

    Returns:
        Configured logger
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, log_level.upper()))

    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))

    logger.addHandler(handler)
    return logger


def get_logger(name: str) -> ContextLogger:
    """Get a context-aware logger."""
    return ContextLogger(logging.getLogger(name))
