"""Root conftest — shared test configuration."""

import logging
import os

import pytest

from agent_iteration.config import get_settings

# Ensure tests don't accidentally use real API keys
os.environ.setdefault("ANTHROPIC_API_KEY", "sk-ant-test-fake-key")


@pytest.fixture(autouse=True)
def _fresh_settings():
    """get_settings() is lru_cached — clear so env overrides apply per test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """create_orchestrator configures root logging; undo it after each test."""
    handlers = list(logging.root.handlers)
    level = logging.root.level
    yield
    logging.root.handlers[:] = handlers
    logging.root.setLevel(level)
