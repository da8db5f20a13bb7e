"""Per-request correlation IDs carried through logging via contextvars.

Each request handled on a connection runs inside its own
``correlation_scope``; a client-supplied ``X-Request-ID`` replaces the
generated ID for the rest of that scope and is echoed on the response.
"""

import contextvars
import logging
import uuid
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Iterator, MutableMapping, Optional

LOGGER_PREFIX = "fileserver."
MISSING_ID = "-"

_correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


@contextmanager
def correlation_scope(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation ID for one request, restoring the previous one after."""
    active_id = correlation_id or generate_correlation_id()
    token = _correlation_id_var.set(active_id)
    try:
        yield active_id
    finally:
        _correlation_id_var.reset(token)


@lru_cache(maxsize=None)
def component_for(logger_name: str) -> str:
    """``fileserver.pipeline.router`` logs as component ``pipeline.router``."""
    if logger_name.startswith(LOGGER_PREFIX):
        return logger_name[len(LOGGER_PREFIX) :]
    return logger_name


class CorrelationLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter injecting the request correlation ID and component name."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["correlation_id"] = get_correlation_id() or MISSING_ID
        extra["component"] = component_for(self.logger.name)
        kwargs["extra"] = extra
        return msg, kwargs
