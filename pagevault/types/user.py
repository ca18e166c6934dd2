"""
Pydantic models for user accounts.

Users are keyed by their normalized (trimmed, lowercase) username. The
password is an opaque comparison value; this service stores it as given.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    """
    Account role.

    - ADMIN: everything, including user and session administration
    - EDITOR: edit, publish and roll back any page
    - CONTRIBUTOR: draft-only edits to pages they created
    """
    ADMIN = "admin"
    EDITOR = "editor"
    CONTRIBUTOR = "contributor"


EDITORIAL_ROLES = frozenset({Role.ADMIN, Role.EDITOR})


class User(BaseModel):
    """A stored user account."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    username: str = Field(..., min_length=1, description="Normalized username")
    role: Role = Field(default=Role.CONTRIBUTOR)
    password: str = Field(..., description="Opaque secret compared on login")
    created: str = Field(..., description="ISO-8601 creation time")
    created_by: Optional[str] = Field(default=None)

    def public_view(self) -> "UserSummary":
        return UserSummary(
            username=self.username,
            role=self.role,
            created=self.created,
            created_by=self.created_by,
        )


class UserSummary(BaseModel):
    """User as returned by the admin listing; never carries the password."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    username: str
    role: Role
    created: str
    created_by: Optional[str] = None


class UserUpdateResult(BaseModel):
    """Outcome of a role change or password reset."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    username: str
    role: Role
    new_password: Optional[str] = None
