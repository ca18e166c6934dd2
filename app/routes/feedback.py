"""
Public feedback submissions.
"""

from fastapi import APIRouter, Depends, Request

from pagevault.vault import PageVault, get_vault

from ..middleware import client_ip, rate_limit
from ..models import FeedbackRequest

router = APIRouter(prefix="/api", tags=["feedback"])


@router.post(
    "/feedback",
    dependencies=[
        Depends(rate_limit("feedback", "Too many feedback submissions. Try again later."))
    ],
)
async def submit_feedback(
    body: FeedbackRequest,
    request: Request,
    vault: PageVault = Depends(get_vault),
):
    entry = await vault.feedback.submit(
        body.page_id,
        body.message,
        email=body.email,
        timestamp=body.timestamp,
        user_agent=body.user_agent,
        client=client_ip(request),
    )
    return {"success": True, "message": "Feedback received", "id": entry.id}
