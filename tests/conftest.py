"""Shared pytest fixtures."""

import logging

import pytest

from formbot.config import get_settings
from formbot.utils.run_log import ROOT_LOGGER_NAME


@pytest.fixture(autouse=True)
def restore_formbot_logger():
    """Undo handlers and levels installed by configure_run_logging."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    handlers = list(root.handlers)
    level = root.level
    propagate = root.propagate
    yield
    root.handlers = handlers
    root.setLevel(level)
    root.propagate = propagate


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make get_settings() read the environment again in every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
