"""API routes for PageVault."""

from .audit import router as audit_router
from .auth import router as auth_router
from .blocks import router as blocks_router
from .content import router as content_router
from .feedback import router as feedback_router
from .health import router as health_router
from .history import router as history_router
from .pages import router as pages_router
from .sessions import router as sessions_router
from .setup import router as setup_router
from .templates import router as templates_router
from .upload import router as upload_router
from .users import router as users_router
from .watch import router as watch_router

__all__ = [
    "audit_router",
    "auth_router",
    "blocks_router",
    "content_router",
    "feedback_router",
    "health_router",
    "history_router",
    "pages_router",
    "sessions_router",
    "setup_router",
    "templates_router",
    "upload_router",
    "users_router",
    "watch_router",
]
