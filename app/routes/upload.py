"""
Asset upload endpoint.

Asset storage is not part of the local service; the route exists so the
admin front end gets a clear error instead of a 404.
"""

from fastapi import APIRouter

from pagevault.exceptions import UnsupportedOperationError

router = APIRouter(prefix="/api", tags=["upload"])


@router.post("/upload")
async def upload():
    raise UnsupportedOperationError("Uploads are not available in local mode.")
