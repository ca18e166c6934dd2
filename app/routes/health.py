"""
Health check endpoint.
"""

import logging
import os
from typing import Any, Dict

import sentry_sdk
from fastapi import APIRouter, Depends

from pagevault import __version__
from pagevault.vault import PageVault, get_vault

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


def get_storage_status(vault: PageVault) -> Dict[str, Any]:
    data_path = vault.pages.data_dir
    return {
        "data_dir": data_path.is_dir() and os.access(data_path, os.W_OK),
        "record_store": vault.store.loaded,
    }


@router.get("/health")
async def health_check(vault: PageVault = Depends(get_vault)):
    """
    Liveness and storage readiness.

    ``status`` is ``degraded`` when the data directory is not writable or
    the record store has not been loaded.
    """
    checks = get_storage_status(vault)
    healthy = all(checks.values())
    if not healthy:
        logger.warning(f"Health check degraded: {checks}")
    return {
        "status": "ok" if healthy else "degraded",
        "localMode": True,
        "version": __version__,
        "checks": {
            **checks,
            "sentry": sentry_sdk.get_client().is_active(),
        },
    }
