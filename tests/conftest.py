"""Shared fixtures for the engine tests."""

from __future__ import annotations

import logging

import pytest

from flowengine.observability import clear_trace_context


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path, monkeypatch):
    """Keep the developer's .env, config file and trace context out of tests."""
    monkeypatch.chdir(tmp_path)
    for var in (
        "JIRA_API_TOKEN",
        "JIRA_EMAIL",
        "FLOWENGINE_BACKEND_URL",
        "FLOWENGINE_TIMEOUT",
        "FLOWENGINE_EXECUTOR",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(
        "flowengine.config.FLOWENGINE_CONFIG_FILE", tmp_path / "missing-configuration.json"
    )
    clear_trace_context()
    yield
    clear_trace_context()


@pytest.fixture
def restore_root_logger():
    """configure_logging() replaces root handlers; put them back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
