"""
User administration endpoints (admin only).
"""

import logging

from fastapi import APIRouter, Depends, status

from pagevault.types import Session
from pagevault.vault import PageVault, get_vault

from ..auth import require_admin
from ..models import CreateUserRequest, UpdateUserRequest, UsernameRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["users"])


@router.get("/users")
async def list_users(
    session: Session = Depends(require_admin),
    vault: PageVault = Depends(get_vault),
):
    users = vault.users.list_users()
    return {
        "users": [user.model_dump(mode="json", by_alias=True) for user in users],
        "total": len(users),
    }


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    body: CreateUserRequest,
    session: Session = Depends(require_admin),
    vault: PageVault = Depends(get_vault),
):
    """Create a user; the password (given or generated) is returned once."""
    user = await vault.users.create_user(
        body.username, role=body.role, password=body.password, actor=session
    )
    return {
        "success": True,
        "username": user.username,
        "role": user.role.value,
        "password": user.password,
    }


@router.patch("/users")
async def update_user(
    body: UpdateUserRequest,
    session: Session = Depends(require_admin),
    vault: PageVault = Depends(get_vault),
):
    result = await vault.users.update_user(
        body.username,
        role=body.role,
        password=body.password,
        reset_password=body.reset_password,
        actor=session,
    )
    return {"success": True, **result.model_dump(mode="json", by_alias=True, exclude_none=True)}


@router.delete("/users")
async def delete_user(
    body: UsernameRequest,
    session: Session = Depends(require_admin),
    vault: PageVault = Depends(get_vault),
):
    username = await vault.users.delete_user(body.username, actor=session)
    return {"success": True, "username": username}
