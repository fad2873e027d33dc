"""Shared test fixtures."""

import pytest

PROVIDER_ENV_VARS = (
    "OPENROUTER_API_KEY",
    "GROQ_API_KEY",
    "REQUEST_TIMEOUT",
    "LOG_LEVEL",
    "ENVIRONMENT",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep real credentials in the environment out of the tests."""
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
