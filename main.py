"""File server: directory listings, downloads and multipart uploads over HTTP."""

import logging
import signal
import sys
from typing import Optional

from fileserver.bootstrap.config import (
    ConfigError,
    build_config,
    build_server_config,
    parse_cli_args,
)
from fileserver.bootstrap.logging_setup import configure_logging
from fileserver.bootstrap.network import get_local_ip
from fileserver.domain.correlation_id import CorrelationLoggerAdapter
from fileserver.lifecycle.state import ServerLifecycle
from fileserver.transport.accept_loop import run_server

SERVER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("fileserver.server"), {})


def _log_banner(port: int, root: str) -> None:
    SERVER_LOGGER.info(
        "Serving %s", root, extra={"event": "serving_root", "root": root}
    )
    SERVER_LOGGER.info(
        "Local: http://localhost:%d",
        port,
        extra={"event": "server_url", "url": f"http://localhost:{port}"},
    )
    network_url = f"http://{get_local_ip()}:{port}"
    SERVER_LOGGER.info(
        "Network: %s", network_url, extra={"event": "server_url", "url": network_url}
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Start the file server and block until it has shut down."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(
        args.log_level, args.log_destination, use_json=args.log_format == "json"
    )

    try:
        config = build_config(args)
    except ConfigError as error:
        SERVER_LOGGER.error(
            "Invalid configuration",
            extra={"event": "config_error", "error": str(error)},
        )
        return 1

    server_config = build_server_config(args)
    lifecycle = ServerLifecycle()

    def shutdown_handler(signum: int, _frame) -> None:
        lifecycle.begin_draining(signal.Signals(signum).name)

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting file server",
        extra={
            "event": "server_starting",
            "host": args.host,
            "port": config.port,
            "root": config.root,
            "debug": config.debug,
            "log_destination": args.log_destination,
            "log_level": args.log_level,
            "socket_timeout": server_config.socket_timeout,
            "shutdown_grace_seconds": server_config.shutdown_grace_seconds,
        },
    )
    _log_banner(config.port, config.root)
    run_server(args, config, server_config, lifecycle)
    return 0


if __name__ == "__main__":
    sys.exit(main())
