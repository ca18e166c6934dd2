"""
Pytest configuration and shared fixtures for PageVault tests.

This module provides common fixtures used across all test files:
- Isolated data/state directories per test
- A controllable clock for expiry and scheduling tests
- A fully wired PageVault on an in-memory record store
- A FastAPI test client and login helpers
"""

import os
import sys
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

# Environment setup before any imports
os.environ["ENVIRONMENT"] = "development"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("SENTRY_DSN", None)
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("SETUP_TOKEN", None)

# Ensure project root is in path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from pagevault.config import get_settings, reload_settings
from pagevault.storage import InMemoryRecordStore
from pagevault.types import Role
from pagevault.vault import PageVault, reset_vault

START_TIME = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = START_TIME):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Settings pointing at a fresh temporary data directory."""
    monkeypatch.setenv("PAGEVAULT_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("PAGEVAULT_STATE_DIR", raising=False)
    monkeypatch.delenv("PAGEVAULT_TEMPLATES_DIR", raising=False)
    monkeypatch.setenv("PAGEVAULT_SEED_PAGES", "false")
    yield reload_settings()
    get_settings.cache_clear()


@pytest.fixture
def store(clock):
    return InMemoryRecordStore(clock=clock)


@pytest_asyncio.fixture
async def vault(settings, store, clock):
    """A loaded PageVault on the in-memory record store."""
    pagevault = PageVault(settings, store=store, clock=clock)
    await pagevault.startup()
    return pagevault


@pytest_asyncio.fixture
async def admin(vault):
    """Session of the bootstrap admin."""
    return await vault.sessions.authenticate("local", "local")


@pytest_asyncio.fixture
async def editor(vault, admin):
    await vault.users.create_user("editor", role=Role.EDITOR, password="editor-pw", actor=admin)
    return await vault.sessions.authenticate("editor", "editor-pw")


@pytest_asyncio.fixture
async def contributor(vault, admin):
    await vault.users.create_user("writer", role=Role.CONTRIBUTOR, password="writer-pw", actor=admin)
    return await vault.sessions.authenticate("writer", "writer-pw")


@pytest.fixture
def client(settings):
    """FastAPI test client with the lifespan (and so the vault) started."""
    from fastapi.testclient import TestClient
    from app.middleware import reset_rate_limiter
    from server import app

    reset_vault()
    reset_rate_limiter()
    with TestClient(app) as test_client:
        yield test_client
    reset_vault()
    reset_rate_limiter()


@pytest.fixture
def rate_limits(client, monkeypatch):
    """Turn rate limiting on for one test; limits keep their defaults."""
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "true")
    reload_settings()
    yield
    get_settings.cache_clear()


def login(client, username: str, password: str) -> dict:
    """Log in and return Authorization headers."""
    response = client.post("/api/auth", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin_headers(client):
    return login(client, "local", "local")


@pytest.fixture
def make_user(client, admin_headers):
    """Create a user through the API and return their auth headers."""

    def _make_user(username: str, role: str) -> dict:
        response = client.post(
            "/api/users",
            json={"username": username, "role": role, "password": f"{username}-pw"},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return login(client, username, f"{username}-pw")

    return _make_user
