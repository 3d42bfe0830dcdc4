"""Shared fixtures."""

import logging
import os

import pytest

from gzmeta.common.config import ConfigLoader


@pytest.fixture
def restore_logging():
    """Put the root logger back the way it was after setup_logging() replaced its handlers."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield root_logger
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Keep ConfigLoader away from real user, system and environment settings.

    Returns the directory used as the user config directory.
    """
    user_dir = tmp_path / "user_config"
    monkeypatch.setattr(
        "platformdirs.user_config_dir",
        lambda appname=None, appauthor=None, **kwargs: str(user_dir),
    )
    monkeypatch.setattr(ConfigLoader, "_load_system_config", lambda self: None)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("GZMETA_"):
            monkeypatch.delenv(key)
    return user_dir
