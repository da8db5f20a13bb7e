"""Per-request pipeline: context, sandbox, body, routing, handler, access log.

Stages signal failure by raising a ``PipelineError``; this module is the
only place that turns a failure into a response.
"""

import logging
import time
from typing import Callable, Optional

from fileserver.bootstrap.config import ASSET_PREFIX, SECURITY_HEADERS, Config
from fileserver.domain.correlation_id import CorrelationLoggerAdapter
from fileserver.domain.errors import FailureKind, PipelineError
from fileserver.domain.http_types import HttpRequest, HttpResponse, should_close
from fileserver.domain.response_builders import failure_response
from fileserver.pipeline.body_collector import attach_body
from fileserver.pipeline.context import RequestContext, create_request_context
from fileserver.pipeline.router import DeferredHandler, route_request
from fileserver.pipeline.security import enforce_sandbox

PIPELINE_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("fileserver.pipeline"), {}
)
ACCESS_LOGGER = CorrelationLoggerAdapter(logging.getLogger("fileserver.access"), {})

# Whether the raising stage's message is shown to the client.
EXPOSE_FAILURE_MESSAGE = {
    FailureKind.SECURITY_VIOLATION: False,
    FailureKind.BODY_TOO_LARGE: False,
    FailureKind.INVALID_UPLOAD: True,
    FailureKind.NOT_FOUND: False,
    FailureKind.UNCLASSIFIED: False,
}

Responder = Callable[[HttpResponse], object]


def _failure(
    kind: FailureKind, message: Optional[str], headers: dict[str, str]
) -> HttpResponse:
    body = message if EXPOSE_FAILURE_MESSAGE[kind] else None
    return failure_response(
        kind, SECURITY_HEADERS, body, close_connection=should_close(headers)
    )


def _run_stages(context: RequestContext, config: Config) -> HttpResponse:
    enforce_sandbox(context, config)
    attach_body(context)
    result = route_request(context)
    if isinstance(result, DeferredHandler):
        return result.handler(context, config)
    return _failure(result.kind, result.message, context.headers)


def _route_for_log(request: HttpRequest, context: Optional[RequestContext]) -> str:
    if context is not None:
        return context.raw_path
    return request.target.partition("?")[0]


def _log_access(
    request: HttpRequest,
    context: Optional[RequestContext],
    response: HttpResponse,
    config: Config,
    started: float,
) -> None:
    route = _route_for_log(request, context)
    if route.startswith(ASSET_PREFIX) and not config.debug:
        return
    ACCESS_LOGGER.info(
        "%s %s %d",
        request.method,
        route,
        response.status_code,
        extra={
            "event": "request_complete",
            "method": request.method,
            "route": route,
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 3),
        },
    )
    if config.debug and request.method == "POST" and context and context.body:
        ACCESS_LOGGER.debug(
            "POST body for %s",
            route,
            extra={
                "event": "request_body",
                "route": route,
                "body": context.body.decode("utf-8", errors="replace"),
            },
        )


def execute_pipeline(
    request: HttpRequest, config: Config, respond: Responder
) -> HttpResponse:
    """Run every stage for ``request``, hand the response to ``respond`` and log it.

    An ``OSError`` raised while responding is access-logged as a 500 and
    re-raised.
    """
    started = time.perf_counter()
    context: Optional[RequestContext] = None
    try:
        context = create_request_context(request, config)
        response = _run_stages(context, config)
    except PipelineError as error:
        if config.debug:
            PIPELINE_LOGGER.info(
                "Pipeline failure",
                extra={
                    "event": "pipeline_failure",
                    "status_code": error.kind.status_code,
                    "error_type": type(error).__name__,
                    "error": error.message,
                },
            )
        response = _failure(error.kind, error.message, request.headers)
    except Exception as error:  # pylint: disable=broad-except
        PIPELINE_LOGGER.error(
            "Unhandled pipeline error",
            extra={
                "event": "pipeline_error",
                "error_type": type(error).__name__,
                "error": str(error),
            },
            exc_info=True,
        )
        response = _failure(FailureKind.UNCLASSIFIED, None, request.headers)

    if request.method == "HEAD":
        response.omit_body = True
    # Unread body bytes would be parsed as the next request.
    if not getattr(request.body_stream, "drained", True):
        response.close_connection = True

    try:
        respond(response)
    except OSError as error:
        # Headers may already be on the wire, so the request is logged as
        # failed and the connection is left for the caller to tear down.
        PIPELINE_LOGGER.warning(
            "Response stream failed",
            extra={
                "event": "response_stream_failed",
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        failed = _failure(FailureKind.UNCLASSIFIED, None, request.headers)
        failed.close_connection = True
        _log_access(request, context, failed, config, started)
        raise
    _log_access(request, context, response, config, started)
    return response
