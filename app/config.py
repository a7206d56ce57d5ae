"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./deadlines.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    notification_mode: Literal["ephemeral", "durable"] = Field(
        default="durable",
        description="Whether notification state lives only in memory or is mirrored to the DB",
    )
    notification_fetch_limit: int = Field(
        default=50,
        description="Maximum number of notifications fetched from the durable store",
        gt=0,
    )
    notification_context_limit: int = Field(
        default=1000,
        description="Maximum number of idle per-user notification contexts kept in memory",
        gt=0,
    )
    seed_demo_notifications: bool = Field(
        default=False,
        description="Populate ephemeral stores with sample notifications",
    )
    vapid_public_key: str | None = Field(
        default=None,
        description="URL-safe base64 public key of the push relay (VAPID)",
    )
    service_worker_path: str = Field(
        default="/sw.js",
        description="Path of the background handler script registered by clients",
    )
    generation_procedure: str = Field(
        default="generate_deadline_notifications",
        description="Stored procedure that materializes deadline notifications",
        pattern=r"^[A-Za-z_][A-Za-z0-9_]*$",
    )
    host_response_timeout_seconds: float = Field(
        default=30.0,
        description="Seconds to wait for a connected client to answer a host request",
        gt=0,
    )
    app_timezone: str | None = Field(
        default=None,
        description="IANA timezone or UTC offset used for timestamps",
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    @model_validator(mode="after")
    def _validate_demo_seed(self) -> "Settings":
        if self.seed_demo_notifications and self.notification_mode != "ephemeral":
            raise ValueError(
                "SEED_DEMO_NOTIFICATIONS is only supported with NOTIFICATION_MODE=ephemeral"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
