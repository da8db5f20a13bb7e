"""Worker thread logic for handling individual client connections."""

import logging
import socket
from typing import Optional

from fileserver.bootstrap.config import SECURITY_HEADERS
from fileserver.domain.correlation_id import CorrelationLoggerAdapter, correlation_scope
from fileserver.domain.http_types import HttpRequest
from fileserver.domain.response_builders import bad_request_response, draining_response
from fileserver.pipeline.io import BodyReader, receive_request, send_response
from fileserver.pipeline.orchestrator import execute_pipeline
from fileserver.transport.context import WorkerContext

WORKER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("fileserver.transport.worker"), {}
)


def _read_request(
    client_socket: socket.socket, buffer: bytes, client_addr_str: str
) -> tuple[Optional[HttpRequest], Optional[BodyReader]]:
    """Read one request head, answering 400 when it cannot be parsed."""
    try:
        request, body_reader = receive_request(client_socket, buffer)
    except ValueError as error:
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={
                "event": "malformed_request",
                "client": client_addr_str,
                "error": str(error),
            },
        )
        send_response(client_socket, bad_request_response(SECURITY_HEADERS))
        return None, None

    if request is None and WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        WORKER_LOGGER.debug(
            "Client disconnected before sending a request",
            extra={"event": "client_disconnected", "client": client_addr_str},
        )
    return request, body_reader


def _serve_connection(
    client_socket: socket.socket, client_addr_str: str, context: WorkerContext
) -> None:
    buffer = b""
    while True:
        with correlation_scope():
            if context.lifecycle.is_draining():
                send_response(client_socket, draining_response(SECURITY_HEADERS))
                return

            request, body_reader = _read_request(
                client_socket, buffer, client_addr_str
            )
            if request is None or body_reader is None:
                return

            response = execute_pipeline(
                request,
                context.config,
                lambda reply: send_response(client_socket, reply),
            )
            if response.close_connection:
                return
            buffer = body_reader.leftover


def handle_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Process requests on a client socket until the connection is closed."""
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    client_socket.settimeout(context.server_config.socket_timeout)

    with context.lifecycle.track_worker():
        try:
            _serve_connection(client_socket, client_addr_str, context)
        except (ConnectionError, TimeoutError, OSError) as error:
            WORKER_LOGGER.error(
                "Error handling client connection",
                extra={
                    "event": "connection_error",
                    "client": client_addr_str,
                    "error_type": type(error).__name__,
                },
            )
        except Exception as error:  # pylint: disable=broad-except
            WORKER_LOGGER.error(
                "Unexpected error in worker",
                extra={
                    "event": "worker_error",
                    "client": client_addr_str,
                    "error_type": type(error).__name__,
                    "error": str(error),
                },
                exc_info=True,
            )
        finally:
            try:
                client_socket.shutdown(socket.SHUT_WR)
            except OSError:
                pass
            client_socket.close()
            if WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
                WORKER_LOGGER.debug(
                    "Socket closed",
                    extra={"event": "socket_closed", "client": client_addr_str},
                )
