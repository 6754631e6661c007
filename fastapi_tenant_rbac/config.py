"""
Policy engine configuration using pydantic-settings.
Loads from RBAC_* environment variables with .env file support.
"""

import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PolicySettings(BaseSettings):
    """Settings for role lookup, caching and logging."""

    model_config = SettingsConfigDict(
        env_prefix="RBAC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Role cache
    cache_enabled: bool = True
    cache_ttl_seconds: float = Field(default=30.0, gt=0)  # upper bound on staleness

    # Role store
    lookup_timeout_seconds: float = Field(default=2.0, gt=0)

    # Enforcement
    default_application: str = "*"

    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR


@lru_cache
def get_settings() -> PolicySettings:
    """Get cached settings instance."""
    return PolicySettings()


def configure_logging(settings: PolicySettings | None = None) -> None:
    """Set the package logger level. Handlers are left to the application."""
    settings = settings or get_settings()
    logging.getLogger("fastapi_tenant_rbac").setLevel(settings.log_level.upper())
