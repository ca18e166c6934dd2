"""
Durable Record Store.

Holds the shared collections (users, sessions, watchlists and the audit
journal) in memory and persists them wholesale on every flush. The
in-memory maps are authoritative between flushes; ``load()`` rehydrates
them once at process start.

Two implementations share the load/flush logic:
- FileRecordStore: ``state.json`` and ``audit.json`` in a state directory
- InMemoryRecordStore: keeps the serialized documents in a dict (tests)
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from pydantic import ValidationError as PydanticValidationError

from ..types import AuditEntry, Role, Session, User
from ..utils import Clock, to_iso, utc_now
from .files import read_json, write_json

logger = logging.getLogger(__name__)

STATE_DOCUMENT = "state"
AUDIT_DOCUMENT = "audit"


class BaseRecordStore(ABC):
    """Abstract base class for record store implementations."""

    def __init__(
        self,
        bootstrap_username: str = "local",
        bootstrap_password: str = "local",
        clock: Clock = utc_now,
    ) -> None:
        self.users: Dict[str, User] = {}
        self.sessions: Dict[str, Session] = {}
        self.watchlists: Dict[str, Set[str]] = {}
        self.audit: List[AuditEntry] = []
        self.loaded = False
        self._bootstrap_username = bootstrap_username
        self._bootstrap_password = bootstrap_password
        self._clock = clock
        self._flush_locks: Dict[str, asyncio.Lock] = {
            STATE_DOCUMENT: asyncio.Lock(),
            AUDIT_DOCUMENT: asyncio.Lock(),
        }

    @abstractmethod
    async def read_document(self, name: str) -> Any:
        """
        Read a persisted document.

        Args:
            name: Document name (``state`` or ``audit``).

        Returns:
            The decoded document, or None if it does not exist.
        """
        pass

    @abstractmethod
    async def write_document(self, name: str, payload: Any) -> None:
        """
        Replace a persisted document.

        Args:
            name: Document name (``state`` or ``audit``).
            payload: JSON-serializable document.
        """
        pass

    def _bootstrap_admin(self) -> User:
        return User(
            username=self._bootstrap_username,
            role=Role.ADMIN,
            password=self._bootstrap_password,
            created=to_iso(self._clock()),
        )

    async def load(self, force: bool = False) -> None:
        """
        Rehydrate the in-memory maps.

        Runs once unless ``force`` is set. Expired sessions and malformed
        records are dropped. When no state has ever been written, the
        bootstrap admin account is created.
        """
        if self.loaded and not force:
            return

        now = self._clock()
        state = await self.read_document(STATE_DOCUMENT)

        self.users.clear()
        self.sessions.clear()
        self.watchlists.clear()

        if isinstance(state, dict):
            for raw in state.get("users") or []:
                try:
                    user = User.model_validate(raw)
                except PydanticValidationError as e:
                    logger.warning(f"Skipping malformed user record: {e.error_count()} errors")
                    continue
                self.users[user.username] = user

            for raw in state.get("sessions") or []:
                try:
                    session = Session.model_validate(raw)
                except PydanticValidationError:
                    logger.warning("Skipping malformed session record")
                    continue
                if session.is_valid(now):
                    self.sessions[session.token] = session

            for username, pages in (state.get("watchlists") or {}).items():
                if isinstance(pages, list):
                    self.watchlists[username] = {str(p) for p in pages}
        elif self._bootstrap_username:
            admin = self._bootstrap_admin()
            self.users[admin.username] = admin
            logger.info(f"No saved state found; created bootstrap admin '{admin.username}'")
        else:
            logger.info("No saved state and no bootstrap admin; waiting for initial setup")

        audit = await self.read_document(AUDIT_DOCUMENT)
        self.audit = []
        if isinstance(audit, list):
            for raw in audit:
                try:
                    self.audit.append(AuditEntry.model_validate(raw))
                except PydanticValidationError:
                    logger.warning("Skipping malformed audit entry")

        self.loaded = True
        logger.info(
            f"Record store loaded: {len(self.users)} users, "
            f"{len(self.sessions)} sessions, {len(self.audit)} audit entries"
        )

    def _state_payload(self, now: datetime) -> Dict[str, Any]:
        return {
            "users": [u.model_dump(mode="json", by_alias=True) for u in self.users.values()],
            "sessions": [
                s.model_dump(mode="json", by_alias=True)
                for s in self.sessions.values()
                if s.is_valid(now)
            ],
            "watchlists": {
                username: sorted(pages) for username, pages in self.watchlists.items()
            },
        }

    async def flush_state(self) -> None:
        """
        Persist users, live sessions and watchlists.

        The snapshot is taken under the document's flush lock, so a flush
        that starts later always writes the later state last.
        """
        async with self._flush_locks[STATE_DOCUMENT]:
            await self.write_document(STATE_DOCUMENT, self._state_payload(self._clock()))

    async def flush_audit(self) -> None:
        """Persist the audit journal."""
        async with self._flush_locks[AUDIT_DOCUMENT]:
            await self.write_document(
                AUDIT_DOCUMENT,
                [entry.model_dump(mode="json") for entry in self.audit],
            )


class FileRecordStore(BaseRecordStore):
    """Record store backed by JSON files in a state directory."""

    def __init__(self, state_dir: Path, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.state_dir = Path(state_dir)
        self.state_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Record store initialized at: {self.state_dir}")

    def _path(self, name: str) -> Path:
        return self.state_dir / f"{name}.json"

    async def read_document(self, name: str) -> Any:
        return await read_json(self._path(name))

    async def write_document(self, name: str, payload: Any) -> None:
        await write_json(self._path(name), payload)


class InMemoryRecordStore(BaseRecordStore):
    """Record store that never touches disk; documents kept for inspection."""

    def __init__(self, documents: Optional[Dict[str, Any]] = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.documents: Dict[str, Any] = dict(documents or {})
        self.flush_count = 0

    async def read_document(self, name: str) -> Any:
        return self.documents.get(name)

    async def write_document(self, name: str, payload: Any) -> None:
        self.documents[name] = payload
        self.flush_count += 1
