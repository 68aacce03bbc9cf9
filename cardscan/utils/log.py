"""Structured logging for the scanner, built on structlog."""

import logging
import sys
import time
from typing import Any, Dict, Optional

import structlog

from .config import settings

# Keys a timing context carries that are not log fields
_CONTEXT_KEYS = ("event", "start_time")


def _renderer(log_format: str):
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    return structlog.processors.JSONRenderer()


def configure_logging(level: Optional[str] = None, log_format: Optional[str] = None):
    """
    Configure structlog on top of the standard library.

    Logs go to stderr; stdout belongs to the CLI's result output. Level and
    format default to LOG_LEVEL and LOG_FORMAT from settings.
    """
    level = (level or settings.LOG_LEVEL).upper()
    log_format = log_format or settings.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level, logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _renderer(log_format),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """Get a configured logger instance."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(name)


def _elapsed_ms(context: Dict[str, Any]) -> Optional[int]:
    start = context.get("start_time")
    if start is None:
        return None
    return int((time.monotonic() - start) * 1000)


class LoggerMixin:
    """Gives a class a cached logger and start/success/error timing helpers."""

    @property
    def logger(self) -> structlog.BoundLogger:
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger

    def log_start(self, event: str, **kwargs: Any) -> Dict[str, Any]:
        """Log at debug level and return a timing context for the operation."""
        self.logger.debug(f"{event} started", **kwargs)
        return {"event": event, "start_time": time.monotonic(), **kwargs}

    def _finish_fields(self, context: Dict[str, Any], kwargs: Dict[str, Any]) -> Dict[str, Any]:
        fields = {k: v for k, v in context.items() if k not in _CONTEXT_KEYS}
        fields.update(kwargs)
        duration_ms = _elapsed_ms(context)
        if duration_ms is not None:
            fields["duration_ms"] = duration_ms
        return fields

    def log_success(self, context: Dict[str, Any], **kwargs: Any):
        event = context.get("event", "operation")
        self.logger.info(f"{event} completed", **self._finish_fields(context, kwargs))

    def log_error(self, context: Dict[str, Any], error: Exception, **kwargs: Any):
        event = context.get("event", "operation")
        self.logger.error(
            f"{event} failed",
            error=str(error),
            error_type=type(error).__name__,
            **self._finish_fields(context, kwargs),
        )
