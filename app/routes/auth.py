"""
Session endpoints: login, session check and logout.
"""

import logging

from fastapi import APIRouter, Depends

from pagevault.types import Session
from pagevault.vault import PageVault, get_vault

from ..auth import get_current_session
from ..middleware import rate_limit
from ..models import LoginRequest

logger = logging.getLogger(__name__)

LOGIN_LIMIT_MESSAGE = "Too many login attempts. Try again in 60 seconds."

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/auth", dependencies=[Depends(rate_limit("auth", LOGIN_LIMIT_MESSAGE))])
async def login(body: LoginRequest, vault: PageVault = Depends(get_vault)):
    """Exchange username and password for a bearer token."""
    session = await vault.sessions.authenticate(body.username, body.password)
    return {
        "success": True,
        "token": session.token,
        "role": session.role.value,
        "expiresIn": session.expires_in(vault.sessions.now()),
    }


@router.get("/auth")
async def check_session(
    session: Session = Depends(get_current_session),
    vault: PageVault = Depends(get_vault),
):
    return {
        "valid": True,
        "username": session.username,
        "role": session.role.value,
        "expiresIn": session.expires_in(vault.sessions.now()),
    }


@router.delete("/auth")
async def logout(
    session: Session = Depends(get_current_session),
    vault: PageVault = Depends(get_vault),
):
    await vault.sessions.revoke(session)
    return {"success": True}
