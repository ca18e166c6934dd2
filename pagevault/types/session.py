"""Pydantic models for bearer-token sessions."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .user import EDITORIAL_ROLES, Role


class Session(BaseModel):
    """
    A time-bounded authentication grant.

    ``role`` is a snapshot taken at login and is not re-read from the user
    record on later requests.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    token: str = Field(..., min_length=1)
    username: str
    role: Role
    created_at: datetime
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return self.expires_at > now

    def expires_in(self, now: datetime) -> int:
        """Whole seconds until expiry, never negative."""
        return max(0, int((self.expires_at - now).total_seconds()))

    @property
    def is_editorial(self) -> bool:
        return self.role in EDITORIAL_ROLES


class SessionSummary(BaseModel):
    """Session as shown to administrators; the token is never exposed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    username: str
    role: Role
    created: datetime
    expires_at: datetime
    is_current: bool = False
