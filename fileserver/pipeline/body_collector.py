"""Request body accumulation bounded by the global size ceiling."""

import logging
from typing import Iterable

from fileserver.bootstrap.config import MAX_BODY_BYTES
from fileserver.domain.correlation_id import CorrelationLoggerAdapter
from fileserver.domain.errors import BodyTooLargeError
from fileserver.pipeline.context import RequestContext

BODY_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("fileserver.pipeline.body"), {}
)


def collect_body(
    chunks: Iterable[bytes], declared_length: int = 0, limit: int = MAX_BODY_BYTES
) -> bytes:
    """Concatenate ``chunks`` in arrival order, failing once ``limit`` is passed."""
    if declared_length > limit:
        BODY_LOGGER.warning(
            "Declared body length exceeds limit",
            extra={
                "event": "body_size_exceeded",
                "bytes_in": declared_length,
                "limit": limit,
            },
        )
        raise BodyTooLargeError()

    buffer = bytearray()
    for chunk in chunks:
        if len(buffer) + len(chunk) > limit:
            BODY_LOGGER.warning(
                "Request body exceeded limit",
                extra={
                    "event": "body_size_exceeded",
                    "bytes_in": len(buffer) + len(chunk),
                    "limit": limit,
                },
            )
            raise BodyTooLargeError()
        buffer.extend(chunk)
    return bytes(buffer)


def attach_body(context: RequestContext, limit: int = MAX_BODY_BYTES) -> None:
    """Drain the request body stream into ``context.body``."""
    context.body = collect_body(context.body_stream, context.content_length, limit)
    if BODY_LOGGER.logger.isEnabledFor(logging.DEBUG):
        BODY_LOGGER.debug(
            "Request body collected",
            extra={"event": "body_collected", "bytes_in": len(context.body)},
        )
