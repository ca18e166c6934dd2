"""
Bearer-token session authentication.

Routes depend on ``get_current_session`` (any logged-in user) or on a
``require_roles(...)`` dependency. Tokens come from the
``Authorization: Bearer <token>`` header.
"""

import logging
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pagevault.exceptions import AuthenticationError, AuthorizationError
from pagevault.types import Role, Session
from pagevault.utils import bind_context
from pagevault.vault import PageVault, get_vault

logger = logging.getLogger(__name__)

BEARER_SCHEME = HTTPBearer(auto_error=False)


def _remember_user(request: Request, session: Session) -> None:
    request.state.username = session.username
    bind_context(username=session.username)


async def get_current_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(BEARER_SCHEME),
    vault: PageVault = Depends(get_vault),
) -> Session:
    """
    Resolve the request's bearer token to a live session.

    Raises:
        AuthenticationError: Missing header, unknown token or expired session.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Login required")
    session = vault.sessions.validate(credentials.credentials)
    _remember_user(request, session)
    return session


async def get_optional_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(BEARER_SCHEME),
    vault: PageVault = Depends(get_vault),
) -> Optional[Session]:
    """Like get_current_session, but anonymous callers get None."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        session = vault.sessions.validate(credentials.credentials)
    except AuthenticationError:
        logger.debug("Ignoring invalid bearer token on public endpoint")
        return None
    _remember_user(request, session)
    return session


def require_roles(*roles: Role) -> Callable:
    """
    Dependency factory restricting a route to the given roles.

    Usage:
        @router.get("/users")
        async def list_users(session: Session = Depends(require_roles(Role.ADMIN))):
            ...
    """
    allowed = frozenset(roles)

    async def dependency(session: Session = Depends(get_current_session)) -> Session:
        if session.role not in allowed:
            logger.warning(
                f"User '{session.username}' ({session.role.value}) denied; "
                f"requires one of {sorted(r.value for r in allowed)}"
            )
            raise AuthorizationError(
                "Admin access required" if allowed == {Role.ADMIN} else "Permission denied",
                required_role="/".join(sorted(r.value for r in allowed)),
            )
        return session

    return dependency


require_admin = require_roles(Role.ADMIN)
require_editor = require_roles(Role.ADMIN, Role.EDITOR)
