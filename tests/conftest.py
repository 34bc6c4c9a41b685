"""Shared pytest fixtures."""

from unittest.mock import MagicMock

import pytest

from formwork.config import clear_settings_cache

FORMWORK_ENV_VARS = (
    "FORMWORK_CONFIG",
    "FORMWORK_METHOD_OVERRIDE_FIELD",
    "FORMWORK_UNPERMITTED_PARAMS",
)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Run each test without ambient FORMWORK_* vars or a stray app.yaml."""
    for var in FORMWORK_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_request_factory():
    """Factory fixture that returns mock requests with canned form data."""
    def _make(form_data=None, method="POST"):
        request = MagicMock()
        request.method = method

        async def _form():
            return form_data if form_data is not None else {}

        request.form = _form
        return request
    return _make
