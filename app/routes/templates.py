"""
Template catalog endpoint (public).
"""

from fastapi import APIRouter, Depends

from pagevault.vault import PageVault, get_vault

router = APIRouter(prefix="/api", tags=["templates"])


@router.get("/templates")
async def list_templates(vault: PageVault = Depends(get_vault)):
    templates = await vault.templates.list_templates()
    return {
        "templates": [t.model_dump(mode="json", by_alias=True) for t in templates],
        "total": len(templates),
    }
