"""Shared fixtures for unit tests."""

import logging
from pathlib import Path

import pytest

from fileserver.bootstrap.config import Config


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Ensure logs propagate to root so caplog can catch them."""
    logger = logging.getLogger("fileserver")
    old_propagate, old_level = logger.propagate, logger.level
    old_handlers = list(logger.handlers)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    yield
    for handler in logger.handlers:
        if handler not in old_handlers:
            handler.close()
    logger.handlers[:] = old_handlers
    logger.propagate = old_propagate
    logger.setLevel(old_level)


@pytest.fixture(name="root_dir")
def root_dir_fixture(tmp_path: Path) -> Path:
    """Empty directory used as the served root."""
    root = tmp_path / "root"
    root.mkdir()
    return root


@pytest.fixture(name="config")
def config_fixture(root_dir: Path) -> Config:
    """Config pointing at ``root_dir``."""
    return Config(port=3000, root=str(root_dir.resolve()), debug=False)
