"""
Shared test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during tests. Tests control config through monkeypatch.setenv() or by
passing settings objects explicitly.
"""

import pytest


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in every test."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})
