"""Authentication components for the PageVault API."""

from .bearer import (
    BEARER_SCHEME,
    get_current_session,
    get_optional_session,
    require_admin,
    require_editor,
    require_roles,
)

__all__ = [
    "BEARER_SCHEME",
    "get_current_session",
    "get_optional_session",
    "require_admin",
    "require_editor",
    "require_roles",
]
