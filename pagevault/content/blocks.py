"""Reusable content snippets offered by the editor's block picker."""

import logging
from pathlib import Path
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel

from ..storage.files import read_json

logger = logging.getLogger(__name__)

BLOCKS_FILE = Path("_blocks") / "blocks.json"


class Block(BaseModel):
    id: str
    label: str
    content: str


DEFAULT_BLOCKS: Tuple[Block, ...] = (
    Block(
        id="call_to_action",
        label="Call To Action",
        content="## Call to Action\nAdd your action text here.",
    ),
    Block(
        id="contact_card",
        label="Contact Card",
        content="### Contact\nEmail: example@example.com\nPhone: (000) 000-0000",
    ),
    Block(
        id="two_column_note",
        label="Two-Column Note",
        content="| Left | Right |\n|---|---|\n| Item A | Item B |",
    ),
)


def _parse_blocks(raw: Any) -> List[Block]:
    """Keep entries with an id, a label and string content; drop the rest."""
    if not isinstance(raw, list):
        return []
    blocks = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        if not item.get("id") or not item.get("label") or not isinstance(item.get("content"), str):
            continue
        blocks.append(Block(id=str(item["id"]), label=str(item["label"]), content=item["content"]))
    return blocks


class BlockCatalog:
    """Blocks from ``<data_dir>/_blocks/blocks.json``, else the built-in set."""

    def __init__(self, data_dir: Path):
        self.path = Path(data_dir) / BLOCKS_FILE

    async def list_blocks(self) -> Tuple[List[Block], str]:
        """Return the blocks and where they came from (``repository`` or ``default``)."""
        stored: Optional[Any] = await read_json(self.path)
        blocks = _parse_blocks(stored)
        if blocks:
            return blocks, "repository"
        if stored is not None:
            logger.warning(f"No usable blocks in {self.path}; serving defaults")
        return list(DEFAULT_BLOCKS), "default"
