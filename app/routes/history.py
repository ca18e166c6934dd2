"""
Revision history, diff and rollback endpoints.
"""

import logging

from fastapi import APIRouter, Depends, Query

from pagevault.types import DiffMode, Session
from pagevault.vault import PageVault, get_vault

from ..auth import get_current_session, require_editor
from ..models import RollbackRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["history"])

MAX_HISTORY_LIMIT = 100


@router.get("/history")
async def get_history(
    page_id: str = Query(default="", alias="pageId"),
    limit: int = Query(default=25),
    session: Session = Depends(get_current_session),
    vault: PageVault = Depends(get_vault),
):
    """Newest-first revisions of a page (limit clamped to 1..100)."""
    limit = max(1, min(MAX_HISTORY_LIMIT, limit))
    history = await vault.content.history(page_id, session, limit=limit)
    return {"history": [entry.model_dump(mode="json", by_alias=True) for entry in history]}


@router.get("/revision-diff")
async def get_revision_diff(
    page_id: str = Query(default="", alias="pageId"),
    from_id: str = Query(default="", alias="from"),
    to_id: str = Query(default="", alias="to"),
    mode: DiffMode = Query(default=DiffMode.ALIGNED),
    session: Session = Depends(get_current_session),
    vault: PageVault = Depends(get_vault),
):
    result = await vault.content.diff_revisions(page_id, from_id, to_id, session, mode=mode)
    return {
        "summary": result.summary.model_dump(),
        "diff": [row.model_dump(mode="json") for row in result.rows],
    }


@router.post("/rollback")
async def rollback(
    body: RollbackRequest,
    session: Session = Depends(require_editor),
    vault: PageVault = Depends(get_vault),
):
    revision = await vault.content.rollback(body.page_id, body.revision_id, session)
    return {"success": True, "commit": revision.id}
