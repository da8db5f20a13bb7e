"""Pure HTTP response builders."""

from typing import Iterator, Optional

from fileserver.domain.errors import FailureKind
from fileserver.domain.http_types import HttpResponse, should_close


def _status_line(status_code: int, reason: str) -> str:
    return f"HTTP/1.1 {status_code} {reason}"


def text_response(
    message: str,
    request_headers: dict[str, str],
    security_headers: dict[str, str],
    status_line: str = "HTTP/1.1 200 OK",
) -> HttpResponse:
    """Return a buffered text/plain response."""
    headers = {"Content-Type": "text/plain", **security_headers}
    return HttpResponse(
        status_line, headers, message.encode(), should_close(request_headers)
    )


def html_response(
    document: str,
    request_headers: dict[str, str],
    security_headers: dict[str, str],
) -> HttpResponse:
    """Return a buffered text/html response."""
    headers = {"Content-Type": "text/html", **security_headers}
    return HttpResponse(
        "HTTP/1.1 200 OK",
        headers,
        document.encode(),
        should_close(request_headers),
    )


def streaming_response(
    body_iter: Iterator[bytes],
    content_type: str,
    request_headers: dict[str, str],
    security_headers: dict[str, str],
) -> HttpResponse:
    """Return a 200 response whose body is streamed with chunked encoding."""
    headers = {"Content-Type": content_type, **security_headers}
    return HttpResponse(
        "HTTP/1.1 200 OK",
        headers,
        b"",
        should_close(request_headers),
        body_iter=body_iter,
        use_chunked=True,
    )


def failure_response(
    kind: FailureKind,
    security_headers: dict[str, str],
    message: Optional[str] = None,
    close_connection: bool = False,
) -> HttpResponse:
    """Produce the plain-text response for a classified pipeline failure."""
    headers = {"Content-Type": "text/plain", **security_headers}
    body = (message or kind.reason).encode()
    return HttpResponse(
        _status_line(kind.status_code, kind.reason),
        headers,
        body,
        close_connection or kind is FailureKind.BODY_TOO_LARGE,
    )


def bad_request_response(security_headers: dict[str, str]) -> HttpResponse:
    """Produce a 400 response for requests that cannot be parsed at all."""
    headers = {"Content-Type": "text/plain", **security_headers}
    return HttpResponse("HTTP/1.1 400 Bad Request", headers, b"Bad Request", True)


def draining_response(security_headers: dict[str, str]) -> HttpResponse:
    """Produce a 503 response indicating the server is draining."""
    headers = {"Connection": "close", **security_headers}
    return HttpResponse(
        "HTTP/1.1 503 Service Unavailable",
        headers,
        b"draining",
        True,
    )
