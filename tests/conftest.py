"""Pytest configuration and shared fixtures for http-retry tests."""

import pytest


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Auto-cleanup: Clear retry settings from the environment before each test.

    This prevents a developer's shell or .env file from leaking into
    settings resolution tests.
    """
    import os

    for key in list(os.environ.keys()):
        if key.startswith("HTTP_RETRY_"):
            monkeypatch.delenv(key, raising=False)

    yield
