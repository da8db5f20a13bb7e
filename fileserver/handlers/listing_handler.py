"""Directory listing handler."""

import logging

from fileserver.bootstrap.config import SECURITY_HEADERS, Config
from fileserver.domain.correlation_id import CorrelationLoggerAdapter
from fileserver.domain.http_types import HttpResponse
from fileserver.domain.response_builders import html_response
from fileserver.pipeline.context import RequestContext
from fileserver.views.directory_listing import render_directory_listing

LISTING_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("fileserver.handlers.listing"), {}
)


def list_directory(context: RequestContext, config: Config) -> HttpResponse:
    """Return the rendered listing page for the resolved directory."""
    del config
    document = render_directory_listing(context.resolved_path, context.raw_path)
    if LISTING_LOGGER.logger.isEnabledFor(logging.DEBUG):
        LISTING_LOGGER.debug(
            "Directory listing rendered",
            extra={"event": "listing_rendered", "route": context.raw_path},
        )
    return html_response(document, context.headers, SECURITY_HEADERS)
