"""HTTP Input/Output operations."""

import logging
import socket
from typing import Iterator, Optional, Tuple

from fileserver.bootstrap.config import HEADER_DELIMITER, MAX_HEADER_BYTES
from fileserver.domain.correlation_id import (
    CorrelationLoggerAdapter,
    get_correlation_id,
    set_correlation_id,
)
from fileserver.domain.http_types import HttpRequest, HttpResponse

IO_LOGGER = CorrelationLoggerAdapter(logging.getLogger("fileserver.io"), {})

RECV_CHUNK_SIZE = 65536


class BodyReader:
    """Yields the request body from the socket, bounded by Content-Length.

    Bytes received past the end of the body belong to the next pipelined
    request and are kept in ``leftover``.
    """

    def __init__(
        self, client_socket: socket.socket, initial: bytes, content_length: int
    ) -> None:
        self._socket = client_socket
        self._pending = initial[:content_length]
        self.leftover = initial[content_length:]
        self.remaining = content_length

    @property
    def drained(self) -> bool:
        """True once every declared body byte has been read off the wire."""
        return self.remaining == 0

    def __iter__(self) -> Iterator[bytes]:
        if self._pending:
            chunk, self._pending = self._pending, b""
            self.remaining -= len(chunk)
            yield chunk
        while self.remaining > 0:
            chunk = self._socket.recv(min(RECV_CHUNK_SIZE, self.remaining))
            if not chunk:
                raise ConnectionError("Client closed connection mid-body")
            self.remaining -= len(chunk)
            yield chunk


def parse_headers(lines: list[str]) -> dict[str, str]:
    """Convert raw header lines into a lowercase-keyed dictionary."""
    parsed = {}
    for line in lines:
        if not line:
            continue
        name, separator, value = line.partition(":")
        if not separator or not name.strip():
            raise ValueError("Malformed header line")
        parsed[name.strip().lower()] = value.strip()
    return parsed


def parse_request_line(request_line: str) -> Tuple[str, str]:
    """Parse the HTTP method and raw request target from the request line."""
    try:
        method, target, version = request_line.split(" ", 2)
    except ValueError as exc:
        raise ValueError("Invalid request line") from exc
    if not method or not target.startswith("/") or not version.startswith("HTTP/"):
        raise ValueError("Invalid request line")
    return method.upper(), target


def determine_content_length(headers: dict[str, str]) -> int:
    """Validate and return the declared Content-Length for the request."""
    if "transfer-encoding" in headers:
        raise ValueError("Transfer-Encoding request bodies are not supported")
    header_value = headers.get("content-length")
    if header_value is None:
        return 0
    try:
        content_length = int(header_value)
    except ValueError as exc:
        raise ValueError("Invalid Content-Length") from exc
    if content_length < 0:
        raise ValueError("Negative Content-Length")
    return content_length


def receive_request(
    client_socket: socket.socket, buffer: bytes
) -> Tuple[Optional[HttpRequest], Optional[BodyReader]]:
    """Read bytes until a full request head is available.

    The body is left on the wire; the returned request carries a
    ``BodyReader`` as its body stream. Returns ``(None, None)`` when the
    client disconnects before sending a complete head.
    """
    while HEADER_DELIMITER not in buffer:
        if len(buffer) > MAX_HEADER_BYTES:
            raise ValueError("Request head too large")
        chunk = client_socket.recv(RECV_CHUNK_SIZE)
        if not chunk:
            return None, None
        buffer += chunk

    header_block, remainder = buffer.split(HEADER_DELIMITER, 1)
    header_lines = header_block.decode("iso-8859-1").split("\r\n")
    method, target = parse_request_line(header_lines[0])
    headers = parse_headers(header_lines[1:])

    incoming_correlation_id = headers.get("x-request-id")
    if incoming_correlation_id:
        set_correlation_id(incoming_correlation_id)

    content_length = determine_content_length(headers)
    body_reader = BodyReader(client_socket, remainder, content_length)
    if IO_LOGGER.logger.isEnabledFor(logging.DEBUG):
        IO_LOGGER.debug(
            "Parsed request head",
            extra={
                "event": "request_head_parsed",
                "method": method,
                "path": target,
                "bytes_in": content_length,
            },
        )
    request = HttpRequest(method, target, headers, body_reader, content_length)
    return request, body_reader


def _discard_body_iter(response: HttpResponse) -> None:
    close = getattr(response.body_iter, "close", None)
    if close is not None:
        close()


def send_response(client_socket: socket.socket, response: HttpResponse) -> int:
    """Serialize and send the HTTP response; return the body bytes written."""
    headers = dict(response.headers)

    correlation_id = get_correlation_id()
    if correlation_id:
        headers["X-Request-ID"] = correlation_id

    if response.use_chunked:
        headers["Transfer-Encoding"] = "chunked"
    else:
        headers["Content-Length"] = str(len(response.body))
    if response.close_connection:
        headers["Connection"] = "close"
    header_lines = [response.status_line]
    header_lines.extend(f"{name}: {value}" for name, value in headers.items())
    header_block = "\r\n".join(header_lines).encode("latin-1") + b"\r\n\r\n"

    bytes_out = 0
    # The body iterator may hold an open file; it is released on every path.
    try:
        if response.omit_body:
            client_socket.sendall(header_block)
        elif response.use_chunked and response.body_iter is not None:
            client_socket.sendall(header_block)
            for chunk in response.body_iter:
                if not chunk:
                    continue
                client_socket.sendall(f"{len(chunk):X}\r\n".encode() + chunk + b"\r\n")
                bytes_out += len(chunk)
            client_socket.sendall(b"0\r\n\r\n")
        else:
            client_socket.sendall(header_block + response.body)
            bytes_out = len(response.body)
    finally:
        _discard_body_iter(response)
    if IO_LOGGER.logger.isEnabledFor(logging.DEBUG):
        IO_LOGGER.debug(
            "Sent response",
            extra={
                "event": "response_sent",
                "status_code": response.status_code,
                "bytes_out": bytes_out,
            },
        )
    return bytes_out
