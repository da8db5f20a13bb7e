"""Request routing logic."""

import logging
import os
import stat
from dataclasses import dataclass
from typing import Callable, Optional, Union

from fileserver.bootstrap.config import ASSET_PREFIX, Config
from fileserver.domain.correlation_id import CorrelationLoggerAdapter
from fileserver.domain.errors import FailureKind
from fileserver.domain.http_types import HttpResponse
from fileserver.handlers.file_handler import serve_asset, serve_file
from fileserver.handlers.listing_handler import list_directory
from fileserver.handlers.upload_handler import upload_files
from fileserver.pipeline.context import RequestContext

ROUTER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("fileserver.pipeline.router"), {}
)

Handler = Callable[[RequestContext, Config], HttpResponse]


@dataclass(frozen=True)
class DeferredHandler:
    """Routing decision that runs ``handler`` to produce the response."""

    handler: Handler


@dataclass(frozen=True)
class DirectStatus:
    """Routing decision that answers with a status and no handler."""

    kind: FailureKind
    message: Optional[str] = None


HandlerResult = Union[DeferredHandler, DirectStatus]


def _matched(route: str, handler: Handler) -> DeferredHandler:
    if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ROUTER_LOGGER.debug(
            "Route matched",
            extra={"event": "route_matched", "route": route},
        )
    return DeferredHandler(handler)


def route_request(context: RequestContext) -> HandlerResult:
    """Pick the handler for ``context`` from its path, method and entry kind."""
    if context.raw_path.startswith(ASSET_PREFIX):
        return _matched("asset", serve_asset)

    try:
        mode = os.stat(context.resolved_path).st_mode
    except (FileNotFoundError, NotADirectoryError):
        return DirectStatus(FailureKind.NOT_FOUND, FailureKind.NOT_FOUND.reason)
    except OSError as error:
        ROUTER_LOGGER.error(
            "Filesystem lookup failed",
            extra={
                "event": "stat_failed",
                "route": context.raw_path,
                "error_type": type(error).__name__,
            },
        )
        return DirectStatus(FailureKind.UNCLASSIFIED, FailureKind.UNCLASSIFIED.reason)

    if stat.S_ISDIR(mode):
        if context.method == "POST":
            return _matched("upload", upload_files)
        return _matched("listing", list_directory)
    return _matched("file", serve_file)
