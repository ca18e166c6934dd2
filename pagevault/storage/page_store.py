"""
Page Store.

Each page is a directory under the data directory holding
``schema.json`` and ``content.json``. Directories whose names are not
normalized page ids (for example the ``.local`` state directory) are
ignored.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..utils import sanitize_page_id
from .files import read_json, write_json

logger = logging.getLogger(__name__)

SCHEMA_FILE = "schema.json"
CONTENT_FILE = "content.json"


class PageStore:
    """Filesystem persistence for page schemas and content."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Page storage initialized at: {self.data_dir}")

    def page_dir(self, page_id: str) -> Path:
        # Re-sanitize so a raw id can never escape the data directory
        safe_id = sanitize_page_id(page_id)
        if not safe_id:
            raise ValueError("page id is empty after normalization")
        return self.data_dir / safe_id

    def exists(self, page_id: str) -> bool:
        """True if the page directory exists, whatever it contains."""
        return self.page_dir(page_id).is_dir()

    async def read_schema(self, page_id: str) -> Optional[Dict[str, Any]]:
        data = await read_json(self.page_dir(page_id) / SCHEMA_FILE)
        return data if isinstance(data, dict) else None

    async def read_content(self, page_id: str) -> Optional[Dict[str, Any]]:
        data = await read_json(self.page_dir(page_id) / CONTENT_FILE)
        return data if isinstance(data, dict) else None

    async def write_schema(self, page_id: str, schema: Dict[str, Any]) -> None:
        await write_json(self.page_dir(page_id) / SCHEMA_FILE, schema)

    async def write_content(self, page_id: str, content: Dict[str, Any]) -> None:
        await write_json(self.page_dir(page_id) / CONTENT_FILE, content)

    def _list_page_ids_sync(self) -> List[str]:
        if not self.data_dir.is_dir():
            return []
        page_ids = []
        for entry in sorted(self.data_dir.iterdir()):
            if not entry.is_dir() or sanitize_page_id(entry.name) != entry.name:
                continue
            if (entry / SCHEMA_FILE).exists() or (entry / CONTENT_FILE).exists():
                page_ids.append(entry.name)
        return page_ids

    async def list_page_ids(self) -> List[str]:
        """Ids of directories that hold a schema or content file, sorted."""
        return await asyncio.to_thread(self._list_page_ids_sync)
