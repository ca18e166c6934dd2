"""
First-run admin creation.

A deployment that disables the bootstrap admin (empty
``LOCAL_ADMIN_USERNAME``) starts with no accounts. Whoever holds
``SETUP_TOKEN`` can then create the first admin once, and is logged in
straight away.
"""

import hmac
import logging
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .audit import AuditLog
from .exceptions import (
    AuthorizationError,
    ConflictError,
    ServiceUnavailableError,
    ValidationError,
)
from .sessions import SessionManager
from .storage import BaseRecordStore
from .types import Role, Session, User
from .utils import Clock, to_iso, utc_now

logger = logging.getLogger(__name__)

SETUP_CREATOR = "initial-setup"
MIN_PASSWORD_LENGTH = 8
_USERNAME_STRIP = re.compile(r"[^a-z0-9_-]")


class SetupStatus(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    setup_required: bool
    setup_token_configured: bool


def setup_username(value: str) -> Optional[str]:
    """Lowercase, strip to ``[a-z0-9_-]``; None unless 3-32 characters remain."""
    key = _USERNAME_STRIP.sub("", value.lower())
    return key if 3 <= len(key) <= 32 else None


class InitialSetup:
    def __init__(
        self,
        store: BaseRecordStore,
        sessions: SessionManager,
        audit: AuditLog,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.sessions = sessions
        self.audit = audit
        self._clock = clock

    def admin_exists(self) -> bool:
        return any(user.role == Role.ADMIN for user in self.store.users.values())

    def status(self, configured_token: Optional[str]) -> SetupStatus:
        return SetupStatus(
            setup_required=not self.admin_exists(),
            setup_token_configured=bool(configured_token),
        )

    async def create_admin(
        self,
        configured_token: Optional[str],
        setup_token: str,
        username: str,
        password: str,
        client: Optional[str] = None,
    ) -> Session:
        """
        Create the first admin and return a session for it.

        Raises:
            ServiceUnavailableError: No setup token is configured.
            ConflictError: An admin (or the chosen username) already exists.
            ValidationError: Missing fields, bad username or short password.
            AuthorizationError: Wrong setup token.
        """
        if not configured_token:
            raise ServiceUnavailableError("Initial setup is disabled (SETUP_TOKEN not configured)")
        if self.admin_exists():
            raise ConflictError("Initial setup already completed", resource_type="user")
        if not setup_token or not username or not password:
            raise ValidationError("setupToken, username, and password are required")
        if not hmac.compare_digest(setup_token.encode("utf-8"), configured_token.encode("utf-8")):
            logger.warning(f"Rejected setup attempt from {client or 'unknown'}: bad token")
            raise AuthorizationError("Invalid setup token")

        key = setup_username(username)
        if key is None:
            raise ValidationError(
                "Username must be 3-32 characters (letters, numbers, _ -)", field="username"
            )
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
            )
        if key in self.store.users:
            raise ConflictError("User already exists", resource_type="user")

        user = User(
            username=key,
            role=Role.ADMIN,
            password=password,
            created=to_iso(self._clock()),
            created_by=SETUP_CREATOR,
        )
        self.store.users[key] = user
        session = await self.sessions.issue(user)
        await self.audit.append(key, "setup_admin_created", {"ip": client or "unknown"})
        logger.info(f"Initial admin '{key}' created")
        return session
