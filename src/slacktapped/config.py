"""Configuration management service with Pydantic Settings.

This module provides centralized configuration management for the
Slacktapped poller, loading and validating environment variables
at startup.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """Redis connection settings."""

    model_config = SettingsConfigDict(env_prefix="")

    url: str = Field(
        default="redis://localhost:6379",
        alias="REDIS_URL",
        description="Redis connection string",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate Redis URL format."""
        if not v.startswith(("redis://", "rediss://")):
            raise ValueError("REDIS_URL must start with redis:// or rediss://")
        return v


class UntappdSettings(BaseSettings):
    """Untappd API settings."""

    model_config = SettingsConfigDict(env_prefix="UNTAPPD_")

    access_token: SecretStr | None = Field(
        default=None,
        alias="UNTAPPD_ACCESS_TOKEN",
        description="OAuth access token of the account whose friends feed is polled",
    )
    api_url: str = Field(
        default="https://api.untappd.com/v4",
        alias="UNTAPPD_API_URL",
        description="Untappd API base URL",
    )
    page_size: int = Field(
        default=25,
        alias="UNTAPPD_PAGE_SIZE",
        description="Number of check-ins requested per poll",
        ge=1,
        le=50,
    )

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Validate API URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("UNTAPPD_API_URL must be an HTTP(S) endpoint")
        return v.rstrip("/")


class SlackSettings(BaseSettings):
    """Slack incoming webhook settings."""

    model_config = SettingsConfigDict(env_prefix="SLACK_")

    webhook_url: SecretStr | None = Field(
        default=None,
        alias="SLACK_WEBHOOK_URL",
        description="Slack incoming webhook URL",
    )
    channel: str | None = Field(
        default=None,
        alias="SLACK_CHANNEL",
        description="Channel override for the webhook (e.g. #beer)",
    )
    username: str | None = Field(
        default=None,
        alias="SLACK_USERNAME",
        description="Display name override for posted messages",
    )

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: SecretStr | None) -> SecretStr | None:
        """Validate webhook URL format."""
        if v is None:
            return v
        if not v.get_secret_value().startswith("https://"):
            raise ValueError("SLACK_WEBHOOK_URL must be an https:// URL")
        return v

    @property
    def enabled(self) -> bool:
        """Check if Slack delivery is configured."""
        return self.webhook_url is not None


class Settings(BaseSettings):
    """Main application settings.

    Loads configuration from environment variables with support for
    .env files.

    Example:
        ```python
        from slacktapped.config import get_settings

        settings = get_settings()
        print(settings.instance_name)
        print(settings.redis.url)
        ```
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Nested configuration groups
    redis: RedisSettings = Field(default_factory=RedisSettings)
    untappd: UntappdSettings = Field(default_factory=UntappdSettings)
    slack: SlackSettings = Field(default_factory=SlackSettings)

    # Application settings
    instance_name: str = Field(
        alias="INSTANCE_NAME",
        description="Namespace prefix for report markers in the store",
    )
    store_backend: Literal["redis", "memory"] = Field(
        default="redis",
        alias="STORE_BACKEND",
        description="Where report markers are kept",
    )
    poll_interval_seconds: int = Field(
        default=60,
        alias="POLL_INTERVAL_SECONDS",
        description="Seconds between feed polls",
        ge=1,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )
    dry_run: bool = Field(
        default=False,
        alias="DRY_RUN",
        description="Format check-ins without posting them or writing markers",
    )

    @field_validator("instance_name")
    @classmethod
    def validate_instance_name(cls, v: str) -> str:
        """Instance names become the first segment of store keys."""
        if not v or any(c.isspace() for c in v) or ":" in v:
            raise ValueError("INSTANCE_NAME must be non-empty without whitespace or ':'")
        return v

    def get_logging_level(self) -> int:
        """Get the numeric logging level."""
        level: int = getattr(logging, self.log_level)
        return level

    def redacted_summary(self) -> dict[str, str | dict[str, str]]:
        """Get a summary of settings with secrets redacted.

        Returns:
            Dictionary of settings with sensitive values masked.
        """
        return {
            "instance_name": self.instance_name,
            "store_backend": self.store_backend,
            "redis_url": self._redact_url(self.redis.url),
            "untappd": {
                "api_url": self.untappd.api_url,
                "access_token": "(set)" if self.untappd.access_token else "(not set)",
                "page_size": str(self.untappd.page_size),
            },
            "slack_enabled": str(self.slack.enabled),
            "slack_channel": self.slack.channel or "(webhook default)",
            "poll_interval_seconds": str(self.poll_interval_seconds),
            "log_level": self.log_level,
            "dry_run": str(self.dry_run),
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact password from URL if present."""
        if "@" in url and "://" in url:
            protocol_end = url.index("://") + 3
            at_pos = url.index("@")
            creds_part = url[protocol_end:at_pos]
            if ":" in creds_part:
                username = creds_part.split(":")[0]
                return f"{url[:protocol_end]}{username}:***@{url[at_pos + 1 :]}"
        return url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The Settings instance.

    Raises:
        ValidationError: If required environment variables are missing
            or have invalid values.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when you need to reload settings with
    different environment variables.
    """
    get_settings.cache_clear()
