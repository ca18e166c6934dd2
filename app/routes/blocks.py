"""
Reusable content blocks for the editor.
"""

from fastapi import APIRouter, Depends

from pagevault.types import Session
from pagevault.vault import PageVault, get_vault

from ..auth import get_current_session

router = APIRouter(prefix="/api", tags=["blocks"])


@router.get("/blocks")
async def list_blocks(
    session: Session = Depends(get_current_session),
    vault: PageVault = Depends(get_vault),
):
    blocks, source = await vault.blocks.list_blocks()
    return {"blocks": [block.model_dump() for block in blocks], "source": source}
