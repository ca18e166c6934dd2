"""
Audit log endpoint (admin only).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from pagevault.types import Session
from pagevault.utils import normalize_username
from pagevault.vault import PageVault, get_vault

from ..auth import require_admin

router = APIRouter(prefix="/api", tags=["audit"])


@router.get("/audit")
async def get_audit_log(
    limit: int = Query(default=100),
    action: Optional[str] = Query(default=None),
    username: Optional[str] = Query(default=None),
    session: Session = Depends(require_admin),
    vault: PageVault = Depends(get_vault),
):
    """Most recent audit entries first; ``limit`` is clamped to 1..2000."""
    username = normalize_username(username) or None
    logs = vault.audit.query(limit=limit, action=action or None, username=username)
    return {
        "logs": [entry.model_dump(mode="json") for entry in logs],
        "total": vault.audit.total(),
        "filters": {"action": action or None, "username": username},
    }
