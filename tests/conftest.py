"""Shared fixtures."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """Undo setup_logging() changes to the root logger."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Environment without any POOLBOT_* overrides."""
    for var in (
        "POOLBOT_POLL_INTERVAL_MS",
        "POOLBOT_MAX_RETRIES",
        "POOLBOT_LOG_LEVEL",
        "POOLBOT_JSON_LOGS",
        "POOLBOT_RPC_URL",
        "POOLBOT_PRIVATE_KEY",
    ):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
