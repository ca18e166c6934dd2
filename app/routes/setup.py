"""
Initial setup: create the first admin with the deployment's setup token.
"""

from fastapi import APIRouter, Depends, Request, status

from pagevault.config import get_settings
from pagevault.vault import PageVault, get_vault

from ..middleware import client_ip, rate_limit
from ..models import SetupRequest

router = APIRouter(prefix="/api", tags=["setup"])


@router.get("/setup")
async def setup_status(vault: PageVault = Depends(get_vault)):
    """Whether an admin still has to be created, and whether setup is possible."""
    status_ = vault.setup.status(get_settings().session.setup_token)
    return status_.model_dump(by_alias=True)


@router.post(
    "/setup",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("setup", "Too many setup attempts. Try again later."))],
)
async def create_initial_admin(
    body: SetupRequest,
    request: Request,
    vault: PageVault = Depends(get_vault),
):
    session = await vault.setup.create_admin(
        get_settings().session.setup_token,
        body.setup_token,
        body.username,
        body.password,
        client=client_ip(request),
    )
    return {
        "success": True,
        "message": "Initial admin created successfully",
        "token": session.token,
        "username": session.username,
        "role": session.role.value,
        "expiresIn": session.expires_in(vault.sessions.now()),
    }
