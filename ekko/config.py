"""Application configuration settings."""
from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Runtime toggles -----------------------------------------------------
# Runtime environment: "dev" | "test" | "staging" | "prod"
ENV = os.getenv("EKKO_ENV", "dev").lower()

# Recognised API key scopes
API_SCOPES = {"user", "support", "admin"}


class Settings(BaseSettings):
    """Environment configuration for the EKKO work order service."""

    app_env: str = ENV
    database_url: str = "sqlite:///ekko.db"
    SECRET_KEY: str = "change-me"
    LOG_LEVEL: str = "INFO"
    ALLOW_DB_CREATE_ALL: bool = False
    CORS_ALLOW_ORIGINS: list[str] = [
        "https://ekko.app",
        "http://localhost:3000",
    ]
    SENTRY_DSN: str | None = None
    PROMETHEUS_ENABLED: bool = False

    # --- Domain limits ---------------------------------------------------
    MILESTONE_TITLE_MAX: int = 100
    MILESTONE_DESCRIPTION_MAX: int = 500
    DELIVERY_MESSAGE_MAX: int = 2000
    APPLICATION_COVER_LETTER_MAX: int = 1000
    WORK_ORDERS_PAGE_SIZE: int = 10
    NOTIFICATION_PAGE_SIZE: int = 20

    # --- Lifecycle policy ------------------------------------------------
    WORK_ORDER_COMPLETION_POLICY: Literal["all_milestones_approved", "any_approval"] = "all_milestones_approved"
    ESCROW_RELEASE_PER_MILESTONE: bool = False

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="", env_file_encoding="utf-8"
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


class AppInfo(BaseModel):
    name: str = "ekko-workorders"
    version: str = "0.1.0"


settings = Settings()


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return settings


__all__ = [
    "ENV",
    "API_SCOPES",
    "Settings",
    "AppInfo",
    "settings",
    "get_settings",
]
