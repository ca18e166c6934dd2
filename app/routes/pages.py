"""
Page listing, creation and retrieval.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from pagevault.types import Session
from pagevault.vault import PageVault, get_vault

from ..auth import get_optional_session, require_editor
from ..models import CreatePageRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["pages"])


@router.get("/pages")
async def list_pages(
    minimal: bool = Query(default=False),
    limit: Optional[int] = Query(default=None),
    page: int = Query(default=1),
    session: Optional[Session] = Depends(get_optional_session),
    vault: PageVault = Depends(get_vault),
):
    """
    List pages, optionally paginated.

    ``minimal=true`` returns only ``pageId`` and ``title`` per page.
    Contributors only see the pages they created.
    """
    listing = await vault.content.list_pages(
        session=session, minimal=minimal, limit=limit, page=page
    )
    return listing.model_dump(mode="json", by_alias=True)


@router.post("/pages", status_code=status.HTTP_201_CREATED)
async def create_page(
    body: CreatePageRequest,
    session: Session = Depends(require_editor),
    vault: PageVault = Depends(get_vault),
):
    created = await vault.content.create(
        body.page_id,
        session,
        schema=body.page_schema,
        template=body.template,
        title=body.title,
    )
    return {
        "success": True,
        "pageId": created.page_id,
        "schema": created.page_schema,
        "content": created.content,
    }


@router.get("/pages/{page_id}")
async def get_page(page_id: str, vault: PageVault = Depends(get_vault)):
    page = await vault.content.get_page(page_id)
    return page.model_dump(mode="json", by_alias=True)
