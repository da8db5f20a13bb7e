"""Multipart upload handler."""

import logging
import os
import re

from fileserver.bootstrap.config import SECURITY_HEADERS, Config
from fileserver.domain.correlation_id import CorrelationLoggerAdapter
from fileserver.domain.errors import InvalidUploadError
from fileserver.domain.http_types import HttpResponse
from fileserver.domain.multipart import parse_multipart
from fileserver.domain.response_builders import text_response
from fileserver.pipeline.context import RequestContext

UPLOAD_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("fileserver.handlers.upload"), {}
)

MULTIPART_FORM_DATA = "multipart/form-data"
_BOUNDARY_PATTERN = re.compile(r"boundary=(.+)")


def _extract_boundary(content_type: str) -> str:
    boundary_match = _BOUNDARY_PATTERN.search(content_type)
    if boundary_match is None:
        return ""
    return boundary_match.group(1)


def upload_files(context: RequestContext, config: Config) -> HttpResponse:
    """Write every file part of the multipart body into the resolved directory."""
    del config
    content_type = context.headers.get("content-type", "")
    if not content_type.startswith(MULTIPART_FORM_DATA):
        raise InvalidUploadError("Invalid content type")

    boundary = _extract_boundary(content_type)
    if not boundary or context.body is None:
        raise InvalidUploadError("Invalid boundary or request body")

    parts = parse_multipart(context.body, boundary)
    # Filenames are client supplied and written as given.
    for part in parts:
        upload_path = os.path.join(context.resolved_path, part.filename)
        with open(upload_path, "wb") as file_handle:
            file_handle.write(part.data)
        if UPLOAD_LOGGER.logger.isEnabledFor(logging.DEBUG):
            UPLOAD_LOGGER.debug(
                "Upload part written",
                extra={
                    "event": "upload_part_written",
                    "path": part.filename,
                    "bytes_out": len(part.data),
                },
            )

    UPLOAD_LOGGER.info(
        "Upload complete",
        extra={
            "event": "upload_complete",
            "route": context.raw_path,
            "parts": len(parts),
        },
    )
    return text_response(
        "Files uploaded successfully", context.headers, SECURITY_HEADERS
    )
