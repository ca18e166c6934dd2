"""
Tests for the audit log and watchlists.
"""

import pytest

from pagevault.audit import AuditLog
from pagevault.storage import InMemoryRecordStore


@pytest.fixture
def small_audit(clock):
    return AuditLog(InMemoryRecordStore(clock=clock), limit=3, clock=clock)


class TestAuditLog:

    @pytest.mark.asyncio
    async def test_append_is_capped_dropping_oldest(self, small_audit):
        for i in range(5):
            await small_audit.append("local", "content_save", {"n": i})

        assert small_audit.total() == 3
        assert [e.details["n"] for e in small_audit.query()] == [4, 3, 2]

    @pytest.mark.asyncio
    async def test_every_append_flushes(self, small_audit):
        await small_audit.append("local", "login")

        assert small_audit.store.documents["audit"][0]["action"] == "login"

    @pytest.mark.asyncio
    async def test_anonymous_entries_are_system(self, small_audit):
        entry = await small_audit.append(None, "content_scheduled_publish")
        assert entry.username == "system"

    @pytest.mark.asyncio
    async def test_query_filters_and_limit(self, clock):
        audit = AuditLog(InMemoryRecordStore(clock=clock), clock=clock)
        await audit.append("local", "login")
        await audit.append("editor", "login")
        await audit.append("editor", "content_save")

        assert [e.username for e in audit.query(action="login")] == ["editor", "local"]
        assert [e.action for e in audit.query(username="editor")] == ["content_save", "login"]
        assert len(audit.query(limit=1)) == 1
        assert len(audit.query(limit=0)) == 1


class TestWatchlist:

    @pytest.mark.asyncio
    async def test_add_and_remove(self, vault, admin):
        assert await vault.watchlist.add("local", "menu") == ["menu"]
        assert await vault.watchlist.add("local", "faq") == ["faq", "menu"]
        assert await vault.watchlist.remove("local", "menu") == ["faq"]

        assert vault.store.documents["state"]["watchlists"] == {"local": ["faq"]}

    @pytest.mark.asyncio
    async def test_recent_activity_only_for_watched_pages(self, vault, admin):
        await vault.content.create("menu", admin)
        await vault.content.create("faq", admin)
        await vault.watchlist.add("local", "menu")

        recent = vault.watchlist.recent_activity("local")

        assert [e.details["pageId"] for e in recent] == ["menu"]
        assert recent[0].action == "page_create"
