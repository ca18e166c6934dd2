"""
Service container.

Wires the record store, page store, revision log and services together
from settings. The request layer uses ``get_vault()``; tests build their
own PageVault with an in-memory record store and a fixed clock.
"""

import logging
from datetime import timedelta
from typing import Optional

from .audit import AuditLog
from .config import Settings, get_settings
from .content import BlockCatalog, ContentEngine, TemplateCatalog
from .feedback import FeedbackLog
from .revisions import RevisionLog
from .sessions import SessionManager
from .setup import InitialSetup
from .storage import BaseRecordStore, FileRecordStore, PageStore
from .users import UserDirectory
from .utils import Clock, utc_now
from .watchlist import Watchlist

logger = logging.getLogger(__name__)


class PageVault:
    """Every service, sharing one record store and one clock."""

    def __init__(
        self,
        settings: Settings,
        store: Optional[BaseRecordStore] = None,
        clock: Clock = utc_now,
    ):
        self.settings = settings
        storage = settings.storage
        session_settings = settings.session

        self.store = store or FileRecordStore(
            storage.state_path,
            bootstrap_username=session_settings.local_admin_username,
            bootstrap_password=session_settings.local_admin_password,
            clock=clock,
        )
        self.pages = PageStore(storage.data_path)
        self.revisions = RevisionLog(
            storage.state_path / "revisions",
            limit=settings.retention.revision_limit,
            clock=clock,
        )
        self.audit = AuditLog(self.store, limit=settings.retention.audit_limit, clock=clock)
        self.sessions = SessionManager(
            self.store,
            self.audit,
            ttl=timedelta(hours=session_settings.session_ttl_hours),
            clock=clock,
        )
        self.users = UserDirectory(self.store, self.audit, self.sessions, clock=clock)
        self.watchlist = Watchlist(self.store, self.audit)
        self.templates = TemplateCatalog(storage.templates_dir)
        self.content = ContentEngine(
            self.pages, self.revisions, self.audit, self.templates, clock=clock
        )
        self.blocks = BlockCatalog(storage.data_path)
        self.feedback = FeedbackLog(storage.state_path, clock=clock)
        self.setup = InitialSetup(self.store, self.sessions, self.audit, clock=clock)

    async def startup(self) -> None:
        """Load persisted state and seed sample pages if configured."""
        await self.store.load()
        if self.settings.storage.seed_pages:
            await self.content.ensure_seed_pages(self.settings.session.local_admin_username)
        logger.info("PageVault ready", extra=self.settings.get_config_summary())


_vault: Optional[PageVault] = None


def get_vault() -> PageVault:
    """Get or create the process-wide PageVault."""
    global _vault
    if _vault is None:
        _vault = PageVault(get_settings())
    return _vault


def reset_vault() -> None:
    """Forget the process-wide PageVault (tests, settings reload)."""
    global _vault
    _vault = None
