"""Logging configuration for the file server.

All records go through the ``fileserver`` logger and a single handler,
either stdout or a rotating file. JSON output carries a fixed set of
structured fields taken from ``extra``; string fields are scrubbed by
``redact_sensitive`` unless they are listed in ``UNREDACTED_KEYS``.
"""

import json
import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterator, Optional

from fileserver.domain.correlation_id import MISSING_ID, CorrelationLoggerAdapter

LOGGER_NAME = "fileserver"
LOG_FORMAT = (
    "%(asctime)s %(levelname)s [%(correlation_id)s] %(component)s"
    " %(event)s :: %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5
REDACTED = "[REDACTED]"

# No bare "key" word: routes such as /keyboard-layouts/ are logged verbatim.
SENSITIVE_PATTERNS = (
    re.compile(r"(?i)(authorization|token|signature|password|secret|api[_-]?key)"),
    re.compile(r"\b[A-Fa-f0-9]{32,}\b"),
)

REQUEST_FIELDS = (
    "client",
    "method",
    "route",
    "path",
    "status_code",
    "duration_ms",
    "error_type",
    "error",
)
TRANSFER_FIELDS = ("bytes_in", "bytes_out", "parts", "limit", "body")
STARTUP_FIELDS = (
    "host",
    "port",
    "root",
    "debug",
    "url",
    "destination",
    "use_json",
    "log_destination",
    "log_level",
    "socket_timeout",
    "shutdown_grace_seconds",
)
LIFECYCLE_FIELDS = ("grace_seconds", "remaining_workers", "signal")

EXTRA_KEYS = REQUEST_FIELDS + TRANSFER_FIELDS + STARTUP_FIELDS + LIFECYCLE_FIELDS

# Debug-mode POST bodies are mirrored as received.
UNREDACTED_KEYS = frozenset({"body"})


def redact_sensitive(value: str) -> str:
    """Replace ``value`` wholesale when it looks like a credential."""
    if not value:
        return value
    if any(pattern.search(value) for pattern in SENSITIVE_PATTERNS):
        return REDACTED
    return value


class CorrelationIdFilter(logging.Filter):  # pylint: disable=too-few-public-methods
    """Fill in the context fields the formatters expect on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = MISSING_ID
        if not hasattr(record, "component"):
            record.component = record.name
        if not hasattr(record, "event"):
            record.event = "-"
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record, keys sorted."""

    @staticmethod
    def _structured_fields(record: logging.LogRecord) -> Iterator[tuple[str, Any]]:
        for key in EXTRA_KEYS:
            if not hasattr(record, key):
                continue
            value = getattr(record, key)
            if isinstance(value, str) and key not in UNREDACTED_KEYS:
                value = redact_sensitive(value)
            yield key, value

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "correlation_id": getattr(record, "correlation_id", MISSING_ID),
            "component": getattr(record, "component", "unknown"),
            "message": record.getMessage(),
        }
        event = getattr(record, "event", "-")
        if event != "-":
            log_data["event"] = event
        log_data.update(self._structured_fields(record))
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, sort_keys=True, default=str)


def _resolve_level(level_name: str) -> int:
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else logging.INFO


def _open_destination(destination: Optional[str]) -> logging.Handler:
    if not destination or destination.lower() == "stdout":
        return logging.StreamHandler(sys.stdout)
    target_path = Path(destination)
    target_path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        target_path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT
    )


def _build_handler(
    destination: Optional[str], level: int, use_json: bool = True
) -> logging.Handler:
    """Create the stdout or rotating file handler with its formatter."""
    handler = _open_destination(destination)
    handler.setLevel(level)
    if use_json:
        handler.setFormatter(JsonFormatter(datefmt=DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    return handler


def configure_logging(
    level: str = "INFO", destination: Optional[str] = None, use_json: bool = True
) -> CorrelationLoggerAdapter:
    """Route every ``fileserver.*`` logger to one freshly built handler.

    Safe to call repeatedly: earlier handlers are closed and replaced.
    """
    logger = logging.getLogger(LOGGER_NAME)
    numeric_level = _resolve_level(level)
    logger.setLevel(numeric_level)
    logger.propagate = False

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.addHandler(_build_handler(destination, numeric_level, use_json))

    adapter = CorrelationLoggerAdapter(logger, {})
    adapter.info(
        "Logging configured",
        extra={
            "event": "logging_configured",
            "destination": destination or "stdout",
            "use_json": use_json,
            "log_level": logging.getLevelName(numeric_level),
        },
    )
    return adapter
