"""Per-request context derived from the request head and server config."""

import logging
import os
import re
import urllib.parse
from dataclasses import dataclass, field
from typing import Iterable, Optional

from fileserver.bootstrap.config import Config
from fileserver.domain.correlation_id import CorrelationLoggerAdapter
from fileserver.domain.errors import SecurityViolationError
from fileserver.domain.http_types import HttpRequest

CONTEXT_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("fileserver.pipeline.context"), {}
)

_SEGMENT_SPLIT = re.compile(r"[/\\]")


@dataclass
class RequestContext:
    """State for one request; only ``body`` is filled in after construction."""

    method: str
    raw_path: str
    resolved_path: str
    headers: dict[str, str]
    query: dict[str, list[str]] = field(default_factory=dict)
    body: Optional[bytes] = None
    body_stream: Iterable[bytes] = field(default_factory=tuple)
    content_length: int = 0


def _has_parent_segment(path: str) -> bool:
    return ".." in _SEGMENT_SPLIT.split(path)


def _resolve_under_root(root: str, request_path: str) -> str:
    relative = request_path.lstrip("/\\")
    return os.path.normpath(os.path.join(root, relative))


def _is_within_root(candidate: str, root: str) -> bool:
    return candidate == root or candidate.startswith(root.rstrip(os.sep) + os.sep)


def create_request_context(request: HttpRequest, config: Config) -> RequestContext:
    """Build the context for ``request``; raise on any traversal attempt."""
    target, _, _fragment = request.target.partition("#")
    path, _, query_string = target.partition("?")
    raw_path = urllib.parse.unquote(path) or "/"
    query = urllib.parse.parse_qs(query_string)

    if "\x00" in raw_path:
        CONTEXT_LOGGER.warning(
            "NUL byte in request path",
            extra={"event": "traversal_rejected", "method": request.method},
        )
        raise SecurityViolationError("Path contains a NUL byte")

    if _has_parent_segment(raw_path):
        CONTEXT_LOGGER.warning(
            "Parent directory segment rejected",
            extra={"event": "traversal_rejected", "method": request.method},
        )
        raise SecurityViolationError("Path contains a parent directory segment")

    root = os.path.normpath(config.root)
    resolved_path = _resolve_under_root(root, raw_path)
    if not _is_within_root(resolved_path, root):
        CONTEXT_LOGGER.warning(
            "Resolved path escapes root",
            extra={"event": "traversal_rejected", "method": request.method},
        )
        raise SecurityViolationError("Resolved path is outside the served root")

    return RequestContext(
        method=request.method,
        raw_path=raw_path,
        resolved_path=resolved_path,
        headers=request.headers,
        query=query,
        body_stream=request.body_stream,
        content_length=request.content_length,
    )
