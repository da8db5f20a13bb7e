"""Main connection acceptance loop."""

import argparse
import logging
import socket
import threading

from fileserver.bootstrap.config import SECURITY_HEADERS, Config, ServerConfig
from fileserver.bootstrap.socket_factory import create_server_socket
from fileserver.domain.correlation_id import CorrelationLoggerAdapter
from fileserver.domain.response_builders import draining_response
from fileserver.lifecycle.state import ServerLifecycle
from fileserver.pipeline.io import send_response
from fileserver.transport.context import WorkerContext
from fileserver.transport.worker import handle_client

ACCEPT_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("fileserver.transport.accept"), {}
)


def _spawn_worker(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    handler_context: WorkerContext,
) -> None:
    if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ACCEPT_LOGGER.debug(
            "Client connection accepted",
            extra={
                "event": "client_accepted",
                "client": f"{client_address[0]}:{client_address[1]}",
            },
        )
    thread = threading.Thread(
        target=handle_client,
        args=(client_socket, client_address, handler_context),
        daemon=False,
    )
    thread.start()


def _reject_while_draining(client_socket: socket.socket) -> None:
    try:
        send_response(client_socket, draining_response(SECURITY_HEADERS))
    except OSError:
        pass
    finally:
        client_socket.close()


def run_server(
    args: argparse.Namespace,
    config: Config,
    server_config: ServerConfig,
    lifecycle: ServerLifecycle,
) -> None:
    """Accept connections until draining begins, then wait for workers."""
    server_socket = create_server_socket(args)

    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": args.host,
            "port": args.port,
            "root": config.root,
        },
    )

    handler_context = WorkerContext(
        config=config, server_config=server_config, lifecycle=lifecycle
    )

    try:
        while True:
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                if lifecycle.is_draining():
                    break
                continue
            except OSError as error:
                if lifecycle.is_draining():
                    break
                ACCEPT_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                continue

            if lifecycle.is_draining():
                _reject_while_draining(client_socket)
                continue

            _spawn_worker(client_socket, client_address, handler_context)
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={
                "event": "shutdown_waiting",
                "grace_seconds": server_config.shutdown_grace_seconds,
            },
        )
        lifecycle.wait_for_workers(server_config.shutdown_grace_seconds)
        ACCEPT_LOGGER.info(
            "Server shutdown complete", extra={"event": "server_stopped"}
        )
