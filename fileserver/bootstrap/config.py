"""Server configuration and CLI argument parsing."""

import argparse
import os
from dataclasses import dataclass
from pathlib import Path


class ConfigError(Exception):
    """Raised when the command line or environment yields an unusable config."""


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value else default


MAX_BODY_BYTES = 100 * 1024 * 1024
ASSET_PREFIX = "/_fileserver_assets/"
DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_SOCKET_TIMEOUT = 60
DEFAULT_SHUTDOWN_GRACE_SECONDS = 30

HEADER_DELIMITER = b"\r\n\r\n"
MAX_HEADER_BYTES = 64 * 1024

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'",
    "X-Content-Type-Options": "nosniff",
}


@dataclass(frozen=True)
class Config:
    """Immutable per-process settings shared by every pipeline stage."""

    port: int
    root: str
    debug: bool = False


@dataclass
class ServerConfig:
    """Server configuration including timeouts and shutdown settings."""

    socket_timeout: int
    shutdown_grace_seconds: int


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(
        prog="fileserver",
        description="Serve a directory over HTTP with listings and uploads",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=_env_int("FILESERVER_PORT", DEFAULT_PORT),
        help="Port to listen on (default: 3000)",
    )
    parser.add_argument(
        "--path",
        dest="root",
        default=_env_str("FILESERVER_ROOT", os.getcwd()),
        help="Root directory to serve (default: current directory)",
    )
    parser.add_argument("--host", default=_env_str("FILESERVER_HOST", DEFAULT_HOST))
    parser.add_argument(
        "--debug",
        action=argparse.BooleanOptionalAction,
        default=_env_bool("FILESERVER_DEBUG", False),
        help="Log request bodies and asset requests",
    )
    default_log_level = os.getenv("FILESERVER_LOG_LEVEL")
    parser.add_argument(
        "--log-level",
        default=default_log_level.upper() if default_log_level else None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Defaults to DEBUG with --debug, otherwise INFO",
    )
    parser.add_argument(
        "--log-destination",
        default=_env_str("FILESERVER_LOG_DESTINATION", "stdout"),
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default=_env_str("FILESERVER_LOG_FORMAT", "json"),
        choices=["json", "text"],
    )
    parser.add_argument(
        "--socket-timeout",
        type=int,
        default=_env_int("FILESERVER_SOCKET_TIMEOUT", DEFAULT_SOCKET_TIMEOUT),
        help="Socket timeout in seconds for request processing",
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=int,
        default=_env_int(
            "FILESERVER_SHUTDOWN_GRACE_SECONDS", DEFAULT_SHUTDOWN_GRACE_SECONDS
        ),
        help="Grace period in seconds for graceful shutdown",
    )
    args = parser.parse_args(argv)
    if args.log_level is None:
        args.log_level = "DEBUG" if args.debug else "INFO"
    return args


def build_config(args: argparse.Namespace) -> Config:
    """Resolve the served root and freeze the request-facing settings."""
    root = Path(args.root).expanduser().resolve()
    if not root.is_dir():
        raise ConfigError(f"Directory '{root}' does not exist")
    return Config(port=args.port, root=str(root), debug=args.debug)


def build_server_config(args: argparse.Namespace) -> ServerConfig:
    """Collect transport tuning values from parsed arguments."""
    return ServerConfig(
        socket_timeout=args.socket_timeout,
        shutdown_grace_seconds=args.shutdown_grace_seconds,
    )
