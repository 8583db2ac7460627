"""
Shared pytest fixtures.

Strategy: settings are read from the environment and cached by
`get_settings()`, so every client fixture sets its environment with
`monkeypatch` and clears the cache before and after building the app.
Rate limiting is always disabled in tests.
"""

from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from wardset.core.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _make_client(monkeypatch: pytest.MonkeyPatch, env: dict[str, str]) -> Iterator[TestClient]:
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    monkeypatch.setenv("LOG_JSON", "false")
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()

    from wardset.main import create_app

    with TestClient(create_app(), raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    """TestClient in open mode (API_KEY unset)."""
    yield from _make_client(monkeypatch, {"API_KEY": ""})


@pytest.fixture
def authed_client(monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    """TestClient with API_KEY=test-secret enforced."""
    yield from _make_client(monkeypatch, {"API_KEY": "test-secret"})

