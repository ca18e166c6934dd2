"""
PageVault API server.

Assembles the FastAPI application: logging, configuration, Sentry,
middleware, exception handlers and routers. The service container is
created and loaded in the lifespan handler.
"""

import logging
import os
import re
from contextlib import asynccontextmanager

import sentry_sdk
import uvicorn
from dotenv import find_dotenv, load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

# LOG_LEVEL and ENVIRONMENT may come from .env; logging reads them directly
load_dotenv(find_dotenv())

# Configure structured logging FIRST, before other imports that use logging
from pagevault.utils import setup_logging

logger = setup_logging(service_name="pagevault")

from pagevault import __version__
from pagevault.config import Settings, get_settings
from pagevault.vault import get_vault

from app.error_handlers import register_exception_handlers
from app.middleware import RequestLoggingMiddleware
from app.routes import (
    audit_router,
    auth_router,
    blocks_router,
    content_router,
    feedback_router,
    health_router,
    history_router,
    pages_router,
    sessions_router,
    setup_router,
    templates_router,
    upload_router,
    users_router,
    watch_router,
)

settings: Settings = get_settings()

# =============================================================================
# Sentry Error Tracking Configuration
# =============================================================================

SENSITIVE_KEYS = ("password", "secret", "token", "authorization", "bearer", "credential")


def filter_sensitive_breadcrumbs(crumb, hint):
    """Strip credentials from Sentry breadcrumbs before they are sent."""
    if crumb.get("category") == "http" and isinstance(crumb.get("data"), dict):
        data = crumb["data"]
        headers = data.get("headers")
        if isinstance(headers, dict):
            for key in list(headers):
                if any(s in key.lower() for s in SENSITIVE_KEYS):
                    headers[key] = "[FILTERED]"
        if "url" in data:
            for key in SENSITIVE_KEYS:
                data["url"] = re.sub(f"({key}=)[^&]*", r"\1[FILTERED]", data["url"], flags=re.IGNORECASE)

    if crumb.get("category") in ("console", "log") and "message" in crumb:
        message = str(crumb["message"]).lower()
        if any(key in message for key in SENSITIVE_KEYS):
            crumb["message"] = "[FILTERED - may contain sensitive data]"

    return crumb


if settings.is_sentry_configured:
    sentry_settings = settings.sentry
    sentry_sdk.init(
        dsn=sentry_settings.sentry_dsn,
        environment=sentry_settings.sentry_environment,
        sample_rate=1.0,
        traces_sample_rate=sentry_settings.sentry_traces_sample_rate,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        before_breadcrumb=filter_sensitive_breadcrumbs,
        send_default_pii=False,
        release=f"pagevault@{__version__}",
    )
    logger.info(f"Sentry initialized for environment: {sentry_settings.sentry_environment}")
else:
    logger.info("Sentry DSN not configured, error tracking disabled")


# =============================================================================
# Initialize FastAPI App
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load persisted state before serving; nothing to release on shutdown."""
    vault = get_vault()
    await vault.startup()
    yield
    logger.info("PageVault shutting down")


app = FastAPI(
    title="PageVault API",
    description=(
        "Versioned page storage with a draft/publish workflow, "
        "bearer-token sessions and an audit trail."
    ),
    version=__version__,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "health", "description": "Health checks"},
        {"name": "auth", "description": "Login, session check and logout"},
        {"name": "pages", "description": "Page listing and creation"},
        {"name": "content", "description": "Saving, publishing and workflow"},
        {"name": "history", "description": "Revisions, diffs and rollback"},
        {"name": "watch", "description": "Per-user watchlists"},
        {"name": "audit", "description": "Audit log (admin)"},
        {"name": "users", "description": "User administration (admin)"},
        {"name": "sessions", "description": "Session administration (admin)"},
        {"name": "templates", "description": "Schema templates"},
        {"name": "upload", "description": "Asset uploads (not available locally)"},
        {"name": "setup", "description": "First-run admin creation"},
        {"name": "blocks", "description": "Reusable content blocks"},
        {"name": "feedback", "description": "Public page feedback"},
    ],
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.security.origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Authorization",
        "Content-Type",
        "X-Request-ID",
        "Accept",
        "Origin",
    ],
    expose_headers=["X-Request-ID", "X-Response-Time", "Retry-After"],
    max_age=600,
)

# Added last so it wraps every other middleware
if settings.logging.request_logging_enabled:
    app.add_middleware(RequestLoggingMiddleware)
    logger.info("Request logging middleware enabled")


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(pages_router)
app.include_router(content_router)
app.include_router(history_router)
app.include_router(watch_router)
app.include_router(audit_router)
app.include_router(users_router)
app.include_router(sessions_router)
app.include_router(templates_router)
app.include_router(upload_router)
app.include_router(setup_router)
app.include_router(blocks_router)
app.include_router(feedback_router)


if __name__ == "__main__":
    uvicorn.run(
        "server:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8787")),
        reload=not settings.is_production,
    )
