"""Per-user set of watched pages, with recent activity from the audit log."""

from typing import List

from .audit import AuditLog
from .storage import BaseRecordStore
from .types import AuditEntry

RECENT_SCAN_LIMIT = 600


class Watchlist:
    def __init__(self, store: BaseRecordStore, audit: AuditLog):
        self.store = store
        self.audit = audit

    def list(self, username: str) -> List[str]:
        return sorted(self.store.watchlists.get(username, set()))

    async def add(self, username: str, page_id: str) -> List[str]:
        self.store.watchlists.setdefault(username, set()).add(page_id)
        await self.store.flush_state()
        return self.list(username)

    async def remove(self, username: str, page_id: str) -> List[str]:
        self.store.watchlists.setdefault(username, set()).discard(page_id)
        await self.store.flush_state()
        return self.list(username)

    def recent_activity(self, username: str, limit: int = 30) -> List[AuditEntry]:
        """Latest audit entries that touched one of the user's watched pages."""
        watched = self.store.watchlists.get(username)
        if not watched:
            return []
        recent = []
        for entry in self.audit.query(limit=RECENT_SCAN_LIMIT):
            if entry.details.get("pageId") in watched:
                recent.append(entry)
                if len(recent) >= limit:
                    break
        return recent
