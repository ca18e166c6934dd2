"""Storage components for PageVault."""

from .page_store import PageStore
from .record_store import BaseRecordStore, FileRecordStore, InMemoryRecordStore

__all__ = [
    "BaseRecordStore",
    "FileRecordStore",
    "InMemoryRecordStore",
    "PageStore",
]
