"""
Revision Log.

Per-page, newest-first list of immutable content snapshots stored as
``<state_dir>/revisions/<page_id>.json``. Appending prepends and truncates
to the retention cap, so the oldest revisions fall off first.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from .exceptions import ErrorCode, ResourceNotFoundError
from .storage.files import read_json, write_json
from .types import Revision
from .utils import Clock, generate_revision_id, to_iso, utc_now

logger = logging.getLogger(__name__)

DEFAULT_REVISION_LIMIT = 50


class RevisionLog:
    """Append-only snapshot history for every page."""

    def __init__(
        self,
        revisions_dir: Path,
        limit: int = DEFAULT_REVISION_LIMIT,
        clock: Clock = utc_now,
    ):
        self.revisions_dir = Path(revisions_dir)
        self.revisions_dir.mkdir(parents=True, exist_ok=True)
        self.limit = limit
        self._clock = clock

    def _path(self, page_id: str) -> Path:
        return self.revisions_dir / f"{page_id}.json"

    async def _load(self, page_id: str) -> List[Revision]:
        data = await read_json(self._path(page_id), default=[])
        if not isinstance(data, list):
            return []
        revisions = []
        for raw in data:
            try:
                revisions.append(Revision.model_validate(raw))
            except PydanticValidationError:
                logger.warning(f"Skipping malformed revision for page {page_id}")
        return revisions

    async def append(
        self,
        page_id: str,
        snapshot: Dict[str, Any],
        message: str,
        author: Optional[str] = None,
    ) -> Revision:
        """
        Record a new snapshot at the head of the page's history.

        Args:
            page_id: Normalized page id.
            snapshot: Full content document at this point.
            message: Description such as "Saved draft".
            author: Acting username ("system" when None).

        Returns:
            The new revision.
        """
        revision = Revision(
            id=generate_revision_id(),
            message=message,
            author=author or "system",
            timestamp=to_iso(self._clock()),
            content=snapshot,
        )
        revisions = await self._load(page_id)
        revisions.insert(0, revision)
        del revisions[self.limit:]
        await write_json(
            self._path(page_id),
            [r.model_dump(mode="json") for r in revisions],
        )
        logger.debug(f"Recorded revision {revision.id} for {page_id}: {message}")
        return revision

    async def list(self, page_id: str, limit: Optional[int] = None) -> List[Revision]:
        """Newest-first revisions, at most ``limit`` of them."""
        revisions = await self._load(page_id)
        if limit is not None:
            return revisions[:max(0, limit)]
        return revisions

    async def get(self, page_id: str, revision_id: str) -> Revision:
        for revision in await self._load(page_id):
            if revision.id == revision_id:
                return revision
        raise ResourceNotFoundError(
            "Revision not found",
            resource_type="revision",
            resource_id=revision_id,
            error_code=ErrorCode.REVISION_NOT_FOUND,
        )
