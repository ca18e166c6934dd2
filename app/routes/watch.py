"""
Per-user watchlist endpoints.
"""

from fastapi import APIRouter, Depends

from pagevault.content import ContentEngine
from pagevault.types import Session
from pagevault.vault import PageVault, get_vault

from ..auth import get_current_session
from ..models import PageRequest

router = APIRouter(prefix="/api", tags=["watch"])


@router.get("/watch")
async def get_watchlist(
    session: Session = Depends(get_current_session),
    vault: PageVault = Depends(get_vault),
):
    recent = vault.watchlist.recent_activity(session.username)
    return {
        "watchedPages": vault.watchlist.list(session.username),
        "recent": [
            {
                "action": entry.action,
                "pageId": entry.details.get("pageId"),
                "username": entry.username,
                "timestamp": entry.timestamp,
                "details": entry.details,
            }
            for entry in recent
        ],
    }


@router.post("/watch")
async def watch_page(
    body: PageRequest,
    session: Session = Depends(get_current_session),
    vault: PageVault = Depends(get_vault),
):
    page_id = ContentEngine.normalize_page_id(body.page_id)
    watched = await vault.watchlist.add(session.username, page_id)
    return {"success": True, "pageId": page_id, "watchedPages": watched}


@router.delete("/watch")
async def unwatch_page(
    body: PageRequest,
    session: Session = Depends(get_current_session),
    vault: PageVault = Depends(get_vault),
):
    page_id = ContentEngine.normalize_page_id(body.page_id)
    watched = await vault.watchlist.remove(session.username, page_id)
    return {"success": True, "pageId": page_id, "watchedPages": watched}
