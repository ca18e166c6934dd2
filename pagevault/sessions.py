"""
Session Manager.

Issues, validates and revokes bearer-token sessions. Expiry is checked
lazily at validation time; expired sessions are also dropped whenever the
record store is loaded or flushed.
"""

import hmac
import logging
from datetime import timedelta
from typing import List, Optional

from .audit import AuditLog
from .exceptions import AuthenticationError, ErrorCode
from .storage import BaseRecordStore
from .types import Session, SessionSummary, User
from .utils import Clock, generate_token, normalize_username, utc_now

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(hours=12)


class SessionManager:
    """Owns the session lifecycle; every state change flushes the store."""

    def __init__(
        self,
        store: BaseRecordStore,
        audit: AuditLog,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.audit = audit
        self.ttl = ttl
        self._clock = clock

    def now(self):
        return self._clock()

    async def authenticate(self, username: str, password: str) -> Session:
        """
        Exchange credentials for a new session.

        Unknown user and wrong password fail identically.

        Raises:
            AuthenticationError: If the credentials do not match.
        """
        key = normalize_username(username)
        user = self.store.users.get(key)
        supplied = (password or "").strip()
        if user is None or not hmac.compare_digest(
            user.password.encode("utf-8"), supplied.encode("utf-8")
        ):
            logger.info(f"Failed login for '{key}'")
            raise AuthenticationError(
                "Invalid credentials", error_code=ErrorCode.INVALID_CREDENTIALS
            )

        session = await self.issue(user)
        await self.audit.append(session.username, "login", {"username": session.username})
        logger.info(f"User '{session.username}' logged in as {session.role.value}")
        return session

    async def issue(self, user: User) -> Session:
        """Create and persist a session for ``user`` without checking credentials."""
        now = self.now()
        session = Session(
            token=generate_token(),
            username=user.username,
            role=user.role,
            created_at=now,
            expires_at=now + self.ttl,
        )
        self.store.sessions[session.token] = session
        await self.store.flush_state()
        return session

    def validate(self, token: Optional[str]) -> Session:
        """
        Resolve a bearer token to its live session.

        Raises:
            AuthenticationError: If the token is missing, unknown or expired.
        """
        session = self.store.sessions.get(token) if token else None
        if session is None or not session.is_valid(self.now()):
            raise AuthenticationError(
                "Invalid session", error_code=ErrorCode.INVALID_SESSION
            )
        return session

    async def revoke(self, session: Session) -> None:
        """Log out one session."""
        self.store.sessions.pop(session.token, None)
        await self.store.flush_state()
        await self.audit.append(session.username, "logout", {"username": session.username})

    async def revoke_all(self, username: str, actor: Optional[Session] = None) -> int:
        """Remove every session belonging to ``username``; returns how many."""
        key = normalize_username(username)
        tokens = [t for t, s in self.store.sessions.items() if s.username == key]
        for token in tokens:
            del self.store.sessions[token]
        await self.store.flush_state()
        await self.audit.append(
            actor.username if actor else None,
            "logout",
            {"username": key, "revoked": True},
        )
        logger.info(f"Revoked {len(tokens)} sessions for '{key}'")
        return len(tokens)

    def list_sessions(self, current: Optional[Session] = None) -> List[SessionSummary]:
        """Live sessions for the admin view; tokens are never included."""
        now = self.now()
        return [
            SessionSummary(
                username=s.username,
                role=s.role,
                created=s.created_at,
                expires_at=s.expires_at,
                is_current=current is not None and s.token == current.token,
            )
            for s in self.store.sessions.values()
            if s.is_valid(now)
        ]

    async def sweep_expired(self) -> int:
        """Drop expired sessions from memory and persist."""
        now = self.now()
        expired = [t for t, s in self.store.sessions.items() if not s.is_valid(now)]
        for token in expired:
            del self.store.sessions[token]
        if expired:
            await self.store.flush_state()
            logger.info(f"Swept {len(expired)} expired sessions")
        return len(expired)
