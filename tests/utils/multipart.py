"""Minimal multipart/form-data encoder for building upload bodies in tests."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

DEFAULT_BOUNDARY = "----fileserver-test-boundary"

# (field name, filename or None, data)
Field = Tuple[str, Optional[str], bytes]


def encode_multipart(
    fields: Iterable[Field], boundary: str = DEFAULT_BOUNDARY
) -> bytes:
    """Encode ``fields`` the way browsers do, CRLF after every part's data."""

    body = b""
    for name, filename, data in fields:
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        body += f"--{boundary}\r\n".encode()
        body += f"Content-Disposition: {disposition}\r\n".encode()
        if filename is not None:
            body += b"Content-Type: application/octet-stream\r\n"
        body += b"\r\n" + data + b"\r\n"
    body += f"--{boundary}--\r\n".encode()
    return body


def multipart_content_type(boundary: str = DEFAULT_BOUNDARY) -> str:
    """Return the Content-Type header value that announces ``boundary``."""

    return f"multipart/form-data; boundary={boundary}"
