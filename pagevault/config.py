"""
Centralized configuration management for PageVault.

This module provides a Pydantic Settings-based configuration system that:
- Validates environment variables at startup
- Provides type coercion (strings to ints, bools, etc.)
- Groups related settings for better organization
- Supports .env file loading

Usage:
    from pagevault.config import get_settings

    settings = get_settings()
    revision_limit = settings.retention.revision_limit
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# Storage Settings
# =============================================================================


class StorageSettings(BaseSettings):
    """Where pages, revisions and the record store live on disk."""

    model_config = SettingsConfigDict(
        env_prefix="PAGEVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_dir: str = Field(
        default="./data",
        description="Directory holding one sub-directory per page",
    )
    state_dir: Optional[str] = Field(
        default=None,
        description="Directory for state.json, audit.json and revisions (defaults to <data_dir>/.local)",
    )
    templates_dir: Optional[str] = Field(
        default=None,
        description="Optional directory of <template>/schema.json files",
    )
    seed_pages: bool = Field(
        default=True,
        description="Create the sample pages when the data directory has none",
    )

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def state_path(self) -> Path:
        if self.state_dir:
            return Path(self.state_dir)
        return self.data_path / ".local"


# =============================================================================
# Session Settings
# =============================================================================


class SessionSettings(BaseSettings):
    """Session lifetime and the bootstrap local admin account."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    session_ttl_hours: float = Field(
        default=12,
        gt=0,
        description="Hours a session stays valid after login",
    )
    local_admin_username: str = Field(
        default="local",
        description="Admin account created when no state exists yet (empty: use /api/setup instead)",
    )
    local_admin_password: str = Field(
        default="local",
        description="Password of the bootstrap admin account",
    )
    setup_token: Optional[str] = Field(
        default=None,
        description="Shared secret for POST /api/setup; setup is disabled when unset",
    )


# =============================================================================
# Retention Settings
# =============================================================================


class RetentionSettings(BaseSettings):
    """Caps on revision history and the audit journal."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    revision_limit: int = Field(
        default=50,
        ge=1,
        description="Revisions kept per page (oldest dropped first)",
    )
    audit_limit: int = Field(
        default=5000,
        ge=1,
        description="Audit entries kept (oldest dropped first)",
    )


# =============================================================================
# Security Settings
# =============================================================================


class SecuritySettings(BaseSettings):
    """Deployment environment and CORS configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    allowed_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def origins_list(self) -> List[str]:
        """Parse allowed origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]


# =============================================================================
# Rate Limit Settings
# =============================================================================


class RateLimitSettings(BaseSettings):
    """Per-client request caps on login, setup, feedback and session admin."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    rate_limit_enabled: bool = Field(
        default=True,
        description="Enforce the per-client limits below",
    )
    rate_limit_window_seconds: int = Field(
        default=60,
        ge=1,
        description="Length of the sliding window",
    )
    auth_rate_limit: int = Field(default=10, ge=1, description="Login attempts per window")
    sessions_rate_limit: int = Field(default=30, ge=1, description="Session admin calls per window")
    setup_rate_limit: int = Field(default=10, ge=1, description="Initial setup attempts per window")
    feedback_rate_limit: int = Field(default=10, ge=1, description="Feedback submissions per window")

    def limit_for(self, scope: str) -> int:
        return getattr(self, f"{scope}_rate_limit")


# =============================================================================
# Logging Settings
# =============================================================================


class LoggingSettings(BaseSettings):
    """Configuration for logging."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_format_json: bool = Field(
        default=False,
        description="Force JSON log format in development",
    )
    request_logging_enabled: bool = Field(
        default=True,
        description="Enable request logging middleware",
    )


# =============================================================================
# Monitoring Settings (Sentry)
# =============================================================================


class SentrySettings(BaseSettings):
    """Configuration for Sentry error tracking."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    sentry_dsn: Optional[str] = Field(
        default=None,
        description="Sentry DSN for error tracking",
    )
    sentry_environment: str = Field(
        default="development",
        description="Sentry environment name",
    )
    sentry_traces_sample_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Sentry transaction sample rate (0.0 to 1.0)",
    )

    @property
    def is_configured(self) -> bool:
        """Check if Sentry is configured."""
        return bool(self.sentry_dsn)


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """Aggregates all configuration groups."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    storage: StorageSettings = Field(default_factory=StorageSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    retention: RetentionSettings = Field(default_factory=RetentionSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    sentry: SentrySettings = Field(default_factory=SentrySettings)

    @property
    def is_production(self) -> bool:
        return self.security.is_production

    @property
    def is_sentry_configured(self) -> bool:
        return self.sentry.is_configured

    def get_config_summary(self) -> dict:
        """
        Get a summary of configuration status for logging.

        Never includes the bootstrap admin password.
        """
        return {
            "environment": self.security.environment,
            "data_dir": str(self.storage.data_path),
            "state_dir": str(self.storage.state_path),
            "templates_dir": self.storage.templates_dir,
            "seed_pages": self.storage.seed_pages,
            "session_ttl_hours": self.session.session_ttl_hours,
            "revision_limit": self.retention.revision_limit,
            "audit_limit": self.retention.audit_limit,
            "sentry_configured": self.is_sentry_configured,
            "allowed_origins": self.security.origins_list,
            "rate_limit_enabled": self.rate_limit.rate_limit_enabled,
            "setup_enabled": bool(self.session.setup_token),
            "log_level": self.logging.log_level,
        }


# =============================================================================
# Settings Singleton
# =============================================================================


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Call get_settings.cache_clear() (or reload_settings()) to re-read the
    environment.
    """
    return Settings()


def reload_settings() -> Settings:
    """Clear the cache and return fresh settings."""
    get_settings.cache_clear()
    return get_settings()
