"""Context object shared across worker threads."""

from dataclasses import dataclass

from fileserver.bootstrap.config import Config, ServerConfig
from fileserver.lifecycle.state import ServerLifecycle


@dataclass
class WorkerContext:
    """Dependencies shared across connection threads; all read-only."""

    config: Config
    server_config: ServerConfig
    lifecycle: ServerLifecycle
