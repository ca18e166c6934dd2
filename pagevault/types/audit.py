"""Pydantic model for audit journal entries."""

from typing import Any, Dict

from pydantic import BaseModel, Field


class AuditEntry(BaseModel):
    """One mutating action: who did what, when, with which parameters."""

    timestamp: str
    username: str = Field(default="system")
    action: str
    details: Dict[str, Any] = Field(default_factory=dict)
