"""Second, independent containment check run after context construction."""

import logging
import os
from pathlib import PurePosixPath, PureWindowsPath

from fileserver.bootstrap.config import Config
from fileserver.domain.correlation_id import CorrelationLoggerAdapter
from fileserver.domain.errors import SecurityViolationError
from fileserver.pipeline.context import RequestContext

SECURITY_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("fileserver.pipeline.security"), {}
)


def enforce_sandbox(context: RequestContext, config: Config) -> None:
    """Re-derive the resolved path and fail unless it stays under root.

    Runs regardless of what the context factory already checked.
    """
    resolved = os.path.abspath(os.path.normpath(context.resolved_path))
    root = os.path.abspath(config.root)

    if os.path.commonpath([resolved, root]) != root:
        SECURITY_LOGGER.warning(
            "Sandbox containment check failed",
            extra={"event": "sandbox_violation", "method": context.method},
        )
        raise SecurityViolationError("Resolved path is outside the served root")

    for parts in (
        PurePosixPath(context.raw_path).parts,
        PureWindowsPath(context.raw_path).parts,
    ):
        if ".." in parts:
            SECURITY_LOGGER.warning(
                "Parent segment found in request path",
                extra={"event": "sandbox_violation", "method": context.method},
            )
            raise SecurityViolationError("Path contains a parent directory segment")
