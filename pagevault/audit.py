"""Bounded, append-only journal of mutating actions."""

import logging
from typing import Any, Dict, List, Optional

from .storage import BaseRecordStore
from .types import AuditEntry
from .utils import Clock, to_iso, utc_now

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_LIMIT = 5000
MAX_QUERY_LIMIT = 2000


class AuditLog:
    """Audit entries live in the record store and are flushed on every append."""

    def __init__(
        self,
        store: BaseRecordStore,
        limit: int = DEFAULT_AUDIT_LIMIT,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.limit = limit
        self._clock = clock

    async def append(
        self,
        username: Optional[str],
        action: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditEntry:
        entry = AuditEntry(
            timestamp=to_iso(self._clock()),
            username=username or "system",
            action=action,
            details=details or {},
        )
        self.store.audit.append(entry)
        overflow = len(self.store.audit) - self.limit
        if overflow > 0:
            del self.store.audit[:overflow]
        await self.store.flush_audit()
        logger.info(
            f"{action} by {entry.username}",
            extra={
                "audit_action": action,
                "audit_details": entry.details,
                "username": entry.username,
                "page_id": entry.details.get("pageId"),
            },
        )
        return entry

    def query(
        self,
        limit: int = 100,
        action: Optional[str] = None,
        username: Optional[str] = None,
    ) -> List[AuditEntry]:
        """
        Most recent matching entries, newest first.

        ``limit`` is clamped to 1..2000.
        """
        limit = max(1, min(MAX_QUERY_LIMIT, limit))
        results = []
        for entry in reversed(self.store.audit):
            if action and entry.action != action:
                continue
            if username and entry.username != username:
                continue
            results.append(entry)
            if len(results) >= limit:
                break
        return results

    def total(self) -> int:
        return len(self.store.audit)
