"""
Tests for the durable record store.
"""

import asyncio
import json
from datetime import timedelta

import pytest

from pagevault.storage import FileRecordStore, InMemoryRecordStore
from pagevault.types import AuditEntry, Role, Session, User


def _session(token, clock, expires_in):
    return Session(
        token=token,
        username="local",
        role=Role.ADMIN,
        created_at=clock() - timedelta(hours=1),
        expires_at=clock() + expires_in,
    )


class TestBootstrap:

    @pytest.mark.asyncio
    async def test_first_load_creates_local_admin(self, clock):
        store = InMemoryRecordStore(clock=clock)
        await store.load()

        admin = store.users["local"]
        assert admin.role == Role.ADMIN
        assert admin.password == "local"

    @pytest.mark.asyncio
    async def test_bootstrap_credentials_are_configurable(self, clock):
        store = InMemoryRecordStore(
            bootstrap_username="root", bootstrap_password="changeme", clock=clock
        )
        await store.load()

        assert list(store.users) == ["root"]

    @pytest.mark.asyncio
    async def test_existing_state_skips_bootstrap(self, clock):
        store = InMemoryRecordStore(
            documents={"state": {"users": [], "sessions": [], "watchlists": {}}},
            clock=clock,
        )
        await store.load()

        assert store.users == {}


class TestFileRecordStore:

    @pytest.mark.asyncio
    async def test_state_survives_reload(self, tmp_path, clock):
        store = FileRecordStore(tmp_path, clock=clock)
        await store.load()
        store.sessions["tok"] = _session("tok", clock, timedelta(hours=1))
        store.watchlists["local"] = {"menu", "faq"}
        await store.flush_state()

        reloaded = FileRecordStore(tmp_path, clock=clock)
        await reloaded.load()

        assert "local" in reloaded.users
        assert "tok" in reloaded.sessions
        assert reloaded.watchlists["local"] == {"menu", "faq"}

    @pytest.mark.asyncio
    async def test_load_drops_expired_and_malformed_records(self, tmp_path, clock):
        state = {
            "users": [
                {"username": "ed", "role": "editor", "password": "pw", "created": "2026-01-01T00:00:00.000Z"},
                {"role": "admin"},
            ],
            "sessions": [
                {"token": "live", "username": "ed", "role": "editor",
                 "createdAt": "2026-01-15T11:00:00Z", "expiresAt": "2026-01-15T13:00:00Z"},
                {"token": "stale", "username": "ed", "role": "editor",
                 "createdAt": "2026-01-15T10:00:00Z", "expiresAt": "2026-01-15T11:30:00Z"},
            ],
            "watchlists": {"ed": ["faq"], "broken": "not-a-list"},
        }
        (tmp_path / "state.json").write_text(json.dumps(state))

        store = FileRecordStore(tmp_path, clock=clock)
        await store.load()

        assert list(store.users) == ["ed"]
        assert list(store.sessions) == ["live"]
        assert store.watchlists == {"ed": {"faq"}}

    @pytest.mark.asyncio
    async def test_flush_omits_expired_sessions(self, tmp_path, clock):
        store = FileRecordStore(tmp_path, clock=clock)
        await store.load()
        store.sessions["live"] = _session("live", clock, timedelta(hours=1))
        store.sessions["stale"] = _session("stale", clock, timedelta(seconds=-1))
        await store.flush_state()

        data = json.loads((tmp_path / "state.json").read_text())
        assert [s["token"] for s in data["sessions"]] == ["live"]

    @pytest.mark.asyncio
    async def test_non_list_audit_file_loads_empty(self, tmp_path, clock):
        (tmp_path / "audit.json").write_text('{"oops": true}')

        store = FileRecordStore(tmp_path, clock=clock)
        await store.load()

        assert store.audit == []

    @pytest.mark.asyncio
    async def test_load_runs_once_unless_forced(self, tmp_path, clock):
        store = FileRecordStore(tmp_path, clock=clock)
        await store.load()
        store.users.clear()

        await store.load()
        assert store.users == {}

        await store.load(force=True)
        assert "local" in store.users


class SlowFirstWriteStore(InMemoryRecordStore):
    """Delays the first write so a later flush can overtake it."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.writes = []

    async def write_document(self, name, payload):
        self.writes.append(name)
        if len(self.writes) == 1:
            await asyncio.sleep(0.05)
        await super().write_document(name, payload)


class TestConcurrentFlushes:

    @pytest.mark.asyncio
    async def test_later_flush_is_written_last(self, clock):
        store = SlowFirstWriteStore(clock=clock)
        await store.load()

        def add_user(username):
            store.users[username] = User(
                username=username, role=Role.EDITOR, password="pw", created="2026-01-15T12:00:00.000Z"
            )

        async def first():
            add_user("alice")
            await store.flush_state()

        async def second():
            await asyncio.sleep(0.01)
            add_user("bob")
            await store.flush_state()

        await asyncio.gather(first(), second())

        persisted = {user["username"] for user in store.documents["state"]["users"]}
        assert persisted == {"local", "alice", "bob"}

    @pytest.mark.asyncio
    async def test_audit_flushes_keep_every_entry(self, tmp_path, clock):
        store = FileRecordStore(tmp_path, clock=clock)
        await store.load()

        async def append(action):
            store.audit.append(
                AuditEntry(timestamp="2026-01-15T12:00:00.000Z", username="local", action=action)
            )
            await store.flush_audit()

        await asyncio.gather(*(append(f"action_{i}") for i in range(5)))

        data = json.loads((tmp_path / "audit.json").read_text())
        assert len(data) == 5
