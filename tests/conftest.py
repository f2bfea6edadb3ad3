"""Pytest configuration and shared fixtures for salesforce-client-core tests."""

import pytest

from salesforce_client_core.config import ClientSettings


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Auto-cleanup: Clear Salesforce-related environment variables before each test.

    This prevents test pollution when testing setting resolution.
    """
    import os

    test_prefixes = ("SALESFORCE_", "TEST_")

    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in test_prefixes):
            monkeypatch.delenv(key, raising=False)

    yield


@pytest.fixture
def fast_settings() -> ClientSettings:
    """Settings with a short blocking-call deadline."""
    return ClientSettings(network_timeout=0.2)
