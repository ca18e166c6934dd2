"""
Content mutation endpoints: save, publish, reset, workflow, bulk and
scheduled publishing.

Role checks for contributors happen inside the content engine, since
some of them depend on who created the page.
"""

import logging

from fastapi import APIRouter, Depends

from pagevault.types import Session
from pagevault.vault import PageVault, get_vault

from ..auth import get_current_session, require_editor
from ..models import (
    BulkPublishRequest,
    PageRequest,
    PublishRequest,
    SaveRequest,
    WorkflowRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["content"])


@router.post("/save")
async def save_content(
    body: SaveRequest,
    session: Session = Depends(get_current_session),
    vault: PageVault = Depends(get_vault),
):
    await vault.content.save(body.page_id, body.content, session, save_as=body.save_as)
    return {"success": True, "modifiedBy": session.username}


@router.post("/publish")
async def publish_content(
    body: PublishRequest,
    session: Session = Depends(require_editor),
    vault: PageVault = Depends(get_vault),
):
    meta = await vault.content.publish(body.page_id, session, action=body.action)
    return {"success": True, "status": meta.status.value}


@router.delete("/content")
async def delete_content(
    body: PageRequest,
    session: Session = Depends(require_editor),
    vault: PageVault = Depends(get_vault),
):
    """Reset the page's content; the schema and history are kept."""
    revision = await vault.content.reset_content(body.page_id, session)
    return {"success": True, "commit": revision.id}


@router.post("/workflow")
async def update_workflow(
    body: WorkflowRequest,
    session: Session = Depends(require_editor),
    vault: PageVault = Depends(get_vault),
):
    meta = await vault.content.set_workflow_status(
        body.page_id, body.status, session, scheduled_for=body.scheduled_for
    )
    return {
        "success": True,
        "workflowStatus": meta.workflow_status.value,
        "scheduledFor": meta.scheduled_for,
    }


@router.post("/bulk-publish")
async def bulk_publish(
    body: BulkPublishRequest,
    session: Session = Depends(require_editor),
    vault: PageVault = Depends(get_vault),
):
    result = await vault.content.bulk_publish(
        body.page_ids, session, action=body.action, dry_run=body.dry_run
    )
    payload = result.model_dump(mode="json", by_alias=True, exclude_none=True)
    return {"success": True, **payload}


@router.post("/scheduled-publish")
async def scheduled_publish(
    session: Session = Depends(require_editor),
    vault: PageVault = Depends(get_vault),
):
    """Publish every scheduled page whose time has come."""
    result = await vault.content.run_scheduled_publish(session)
    return result.model_dump(mode="json", by_alias=True)
