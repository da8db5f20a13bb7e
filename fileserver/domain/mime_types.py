"""Content type lookup by file extension."""

import mimetypes
from pathlib import Path

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Pinned so listing assets do not depend on the host's mime.types files.
CONTENT_TYPE_OVERRIDES = {
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".txt": "text/plain",
    ".svg": "image/svg+xml",
}


def content_type_for_path(filepath: Path | str) -> str:
    """Return the content type for ``filepath`` or the opaque binary default."""
    suffix = Path(filepath).suffix.lower()
    if suffix in CONTENT_TYPE_OVERRIDES:
        return CONTENT_TYPE_OVERRIDES[suffix]
    mime_type, _ = mimetypes.guess_type(Path(filepath).as_posix())
    return mime_type or DEFAULT_CONTENT_TYPE
