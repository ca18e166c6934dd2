"""
Session administration endpoints (admin only).
"""

from fastapi import APIRouter, Depends

from pagevault.exceptions import ValidationError
from pagevault.types import Session
from pagevault.utils import normalize_username
from pagevault.vault import PageVault, get_vault

from ..auth import require_admin
from ..middleware import rate_limit
from ..models import UsernameRequest

router = APIRouter(
    prefix="/api",
    tags=["sessions"],
    dependencies=[Depends(rate_limit("sessions", "Rate limit exceeded (30 requests/minute). Try again later."))],
)


@router.get("/sessions")
async def list_sessions(
    session: Session = Depends(require_admin),
    vault: PageVault = Depends(get_vault),
):
    sessions = vault.sessions.list_sessions(current=session)
    return {
        "sessions": [s.model_dump(mode="json", by_alias=True) for s in sessions],
        "total": len(sessions),
    }


@router.delete("/sessions")
async def revoke_sessions(
    body: UsernameRequest,
    session: Session = Depends(require_admin),
    vault: PageVault = Depends(get_vault),
):
    """Log a user out everywhere."""
    username = normalize_username(body.username)
    if not username:
        raise ValidationError("username is required", field="username")
    count = await vault.sessions.revoke_all(username, actor=session)
    return {"success": True, "revoked": username, "count": count}
