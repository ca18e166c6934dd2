"""
User Directory.

Administrative CRUD over user accounts. Passwords are opaque comparison
values and never leave this module except as the one-time result of a
create or reset.
"""

import logging
from typing import List, Optional, Union

from .audit import AuditLog
from .exceptions import (
    ConflictError,
    ErrorCode,
    ResourceNotFoundError,
    ValidationError,
)
from .sessions import SessionManager
from .storage import BaseRecordStore
from .types import Role, Session, User, UserSummary, UserUpdateResult
from .utils import Clock, generate_password, normalize_username, to_iso, utc_now

logger = logging.getLogger(__name__)


def parse_role(value: Union[Role, str, None], default: Role = Role.CONTRIBUTOR) -> Role:
    """Accept a Role or its string value; raise ValidationError otherwise."""
    if value is None or value == "":
        return default
    try:
        return Role(value)
    except ValueError:
        raise ValidationError(
            f"Invalid role: {value}",
            field="role",
            error_code=ErrorCode.INVALID_ROLE,
        )


class UserDirectory:
    def __init__(
        self,
        store: BaseRecordStore,
        audit: AuditLog,
        sessions: SessionManager,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.audit = audit
        self.sessions = sessions
        self._clock = clock

    def _require(self, username: str) -> User:
        user = self.store.users.get(username) if username else None
        if user is None:
            raise ResourceNotFoundError(
                "User not found",
                resource_type="user",
                resource_id=username or None,
                error_code=ErrorCode.USER_NOT_FOUND,
            )
        return user

    def list_users(self) -> List[UserSummary]:
        return [user.public_view() for user in self.store.users.values()]

    async def create_user(
        self,
        username: str,
        role: Union[Role, str, None] = None,
        password: Optional[str] = None,
        actor: Optional[Session] = None,
    ) -> User:
        """
        Create an account.

        A 16-character password is generated when none is given; the
        returned User carries it so the caller can hand it out once.

        Raises:
            ValidationError: Empty username or unknown role.
            ConflictError: Username already taken.
        """
        key = normalize_username(username)
        if not key:
            raise ValidationError("username is required", field="username")
        if key in self.store.users:
            raise ConflictError("User already exists", resource_type="user")

        user = User(
            username=key,
            role=parse_role(role),
            password=password or generate_password(),
            created=to_iso(self._clock()),
            created_by=actor.username if actor else None,
        )
        self.store.users[key] = user
        await self.store.flush_state()
        await self.audit.append(
            actor.username if actor else None,
            "user_create",
            {"username": key, "role": user.role.value},
        )
        logger.info(f"Created user '{key}' with role {user.role.value}")
        return user

    async def update_user(
        self,
        username: str,
        role: Union[Role, str, None] = None,
        password: Optional[str] = None,
        reset_password: bool = False,
        actor: Optional[Session] = None,
    ) -> UserUpdateResult:
        """
        Change a user's role and/or password.

        With ``reset_password`` a new password is generated and returned in
        ``new_password``; otherwise ``new_password`` is None.
        """
        key = normalize_username(username)
        user = self._require(key)

        new_role = parse_role(role, default=user.role)
        new_password = password or user.password
        if reset_password:
            new_password = generate_password()

        self.store.users[key] = user.model_copy(
            update={"role": new_role, "password": new_password}
        )
        await self.store.flush_state()

        acting = actor.username if actor else None
        if new_role != user.role:
            await self.audit.append(acting, "user_role_change", {"username": key, "role": new_role.value})
        if reset_password:
            await self.audit.append(acting, "password_change", {"username": key, "reset": True})
            return UserUpdateResult(username=key, role=new_role, new_password=new_password)
        if password:
            await self.audit.append(acting, "password_change", {"username": key, "reset": False})
        return UserUpdateResult(username=key, role=new_role)

    async def delete_user(self, username: str, actor: Optional[Session] = None) -> str:
        """
        Remove an account and revoke all of its sessions.

        Raises:
            ResourceNotFoundError: Unknown user.
            ValidationError: Attempt to delete the acting user.
        """
        key = normalize_username(username)
        self._require(key)
        if actor is not None and key == actor.username:
            raise ValidationError("Cannot delete current user", field="username")

        del self.store.users[key]
        self.store.watchlists.pop(key, None)
        await self.sessions.revoke_all(key, actor=actor)
        await self.audit.append(actor.username if actor else None, "user_delete", {"username": key})
        logger.info(f"Deleted user '{key}'")
        return key
