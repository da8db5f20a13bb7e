"""Shared HTTP type definitions to avoid circular imports."""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional


@dataclass
class HttpRequest:
    """Represents a parsed HTTP request head plus its unread body stream."""

    method: str
    target: str
    headers: dict[str, str]
    body_stream: Iterable[bytes] = field(default_factory=tuple)
    content_length: int = 0


@dataclass
class HttpResponse:
    """Represents an HTTP response to be sent to a client."""

    status_line: str
    headers: dict[str, str]
    body: bytes
    close_connection: bool
    body_iter: Optional[Iterator[bytes]] = None
    use_chunked: bool = False
    omit_body: bool = False

    @property
    def status_code(self) -> int:
        """Numeric status parsed from the status line."""
        return int(self.status_line.split(" ", 2)[1])


def should_close(headers: dict[str, str]) -> bool:
    """Determine whether the connection should be closed after responding."""
    return headers.get("connection", "").lower() == "close"
