"""Decoder for ``multipart/form-data`` request bodies.

The decoder works on the fully buffered body. Parts are delimited by
``--<boundary>`` markers and the final ``--<boundary>--`` marker; each
part's header block ends at the first blank line (CRLFCRLF). Header bytes
are decoded as UTF-8 while part data is kept as opaque bytes, including
the CRLF that precedes the next delimiter.

Only file-bearing parts are returned: a part whose Content-Disposition
lacks either ``name`` or ``filename`` is skipped. Malformed input never
raises, it just yields fewer parts.
"""

import re
from dataclasses import dataclass

HEADER_SEPARATOR = b"\r\n\r\n"
CONTENT_DISPOSITION = "content-disposition"

_NAME_PATTERN = re.compile(r'(?<![\w-])name="([^"]+)"')
_FILENAME_PATTERN = re.compile(r'filename="([^"]+)"')


@dataclass(frozen=True)
class MultipartPart:
    """A single file-bearing part of a multipart body."""

    name: str
    filename: str
    data: bytes


def _parse_disposition(header_block: bytes) -> tuple[str, str] | None:
    text = header_block.decode("utf-8", errors="replace")
    for line in text.split("\r\n"):
        header_name, _, value = line.partition(":")
        if header_name.strip().lower() != CONTENT_DISPOSITION:
            continue
        name_match = _NAME_PATTERN.search(value)
        filename_match = _FILENAME_PATTERN.search(value)
        if name_match is None or filename_match is None:
            return None
        return name_match.group(1), filename_match.group(1)
    return None


def _decode_part(segment: bytes) -> MultipartPart | None:
    header_end = segment.find(HEADER_SEPARATOR)
    if header_end == -1:
        return None
    disposition = _parse_disposition(segment[:header_end])
    if disposition is None:
        return None
    name, filename = disposition
    return MultipartPart(name, filename, segment[header_end + len(HEADER_SEPARATOR) :])


def parse_multipart(body: bytes, boundary: str) -> list[MultipartPart]:
    """Split ``body`` on ``boundary`` and return its file parts in order."""
    parts: list[MultipartPart] = []
    if not boundary:
        return parts

    marker = f"--{boundary}".encode()
    end_marker = f"--{boundary}--".encode()

    position = body.find(marker)
    while position != -1:
        part_start = position + len(marker)
        part_end = body.find(marker, part_start)
        if part_end == -1:
            part_end = body.find(end_marker, part_start)
            if part_end == -1:
                break

        part = _decode_part(body[part_start:part_end])
        if part is not None:
            parts.append(part)

        if body.startswith(end_marker, part_end):
            break
        position = part_end

    return parts
