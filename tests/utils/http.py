"""Raw-socket HTTP helpers for integration tests."""

from __future__ import annotations

import os
import socket
import time
from dataclasses import dataclass
from typing import BinaryIO, Dict, List, Optional


@dataclass(slots=True)
class RawHttpResponse:
    """Structured view of an HTTP response captured from a socket."""

    status_line: str
    headers: Dict[str, str]
    body: bytes
    chunk_sizes: Optional[List[int]] = None

    @property
    def status_code(self) -> int:
        """Numeric status code from the status line."""
        return int(self.status_line.split(" ", 2)[1])


class ResponseReader:
    """Parse consecutive responses from one connection.

    Bytes read past the end of a response stay buffered for the next
    ``read`` call, so pipelined responses are not lost.
    """

    def __init__(self, sock: socket.socket) -> None:
        self._stream: BinaryIO = sock.makefile("rb")

    def _line(self) -> bytes:
        line = self._stream.readline()
        if not line.endswith(b"\r\n"):
            raise RuntimeError("Connection closed mid-response")
        return line[:-2]

    def _exactly(self, length: int) -> bytes:
        data = self._stream.read(length)
        if len(data) != length:
            raise RuntimeError("Connection closed before body completed")
        return data

    def read(self) -> RawHttpResponse:
        """Block until one full response has been received."""
        status_line = self._line().decode("iso-8859-1")
        headers: Dict[str, str] = {}
        while line := self._line():
            name, _, value = line.decode("iso-8859-1").partition(":")
            headers[name.strip().lower()] = value.strip()

        if headers.get("transfer-encoding", "").lower() == "chunked":
            chunks: List[bytes] = []
            sizes: List[int] = []
            while True:
                size = int(self._line(), 16)
                sizes.append(size)
                if size == 0:
                    self._line()
                    break
                chunks.append(self._exactly(size))
                self._line()
            return RawHttpResponse(status_line, headers, b"".join(chunks), sizes)

        length = int(headers.get("content-length", "0"))
        return RawHttpResponse(status_line, headers, self._exactly(length))

    def close(self) -> None:
        self._stream.close()


def read_http_response(sock: socket.socket) -> RawHttpResponse:
    """Read a single response; use ``ResponseReader`` for several."""

    reader = ResponseReader(sock)
    try:
        return reader.read()
    finally:
        reader.close()


def send_raw_request(host: str, port: int, request_bytes: bytes) -> RawHttpResponse:
    """Send raw bytes on a fresh connection and return the parsed response."""

    with socket.create_connection((host, port), timeout=5) as sock:
        sock.sendall(request_bytes)
        return read_http_response(sock)


def reserve_port(host: str = "127.0.0.1") -> int:
    """Return a free TCP port on ``host``."""

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        return sock.getsockname()[1]


def wait_for_port(host: str, port: int, timeout: float = 5.0) -> None:
    """Block until ``host:port`` accepts connections."""

    deadline = time.perf_counter() + timeout
    while time.perf_counter() < deadline:
        try:
            with socket.create_connection((host, port), timeout=0.1):
                return
        except OSError:
            time.sleep(0.05)
    raise RuntimeError(f"Server did not start on {host}:{port} within {timeout}s")


def wait_for_status(
    host: str, port: int, path: str, expected_status: int, timeout: float = 5.0
) -> bool:
    """Poll ``path`` until it answers with ``expected_status``."""
    deadline = time.perf_counter() + timeout
    request = f"GET {path} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode()
    while time.perf_counter() < deadline:
        try:
            if send_raw_request(host, port, request).status_code == expected_status:
                return True
        except (OSError, RuntimeError, ValueError):
            pass
        time.sleep(0.1)
    return False


def send_signal_to_process(pid: int, sig: int) -> None:
    os.kill(pid, sig)
