# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the
curriculum sync service. Settings are loaded from environment variables
with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.notion.api_version)
    '2022-06-28'
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Curriculum database configuration.

    The curriculum database stores the synced course, module, lesson
    and block tables read by the teaching application.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "curriculum"
    password: SecretStr = SecretStr("curriculum_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "curriculum"
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def sync_url(self) -> str:
        """Build the sync database URL for migrations."""
        pwd = self.password.get_secret_value()
        return f"postgresql://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class RedisSettings(BaseSettings):
    """Redis configuration for the Dramatiq message broker.

    Attributes:
        host: Redis server host.
        port: Redis server port.
        password: Redis password.
        database: Redis database number.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        extra="ignore",
    )

    host: str = "localhost"
    port: int = 6379
    password: SecretStr = SecretStr("")
    database: int = 0

    @property
    def url(self) -> str:
        """Build the Redis connection URL."""
        pwd = self.password.get_secret_value()
        if pwd:
            return f"redis://:{pwd}@{self.host}:{self.port}/{self.database}"
        return f"redis://{self.host}:{self.port}/{self.database}"


class NotionSettings(BaseSettings):
    """Notion API configuration.

    Attributes:
        api_key: Integration token used as bearer credential.
        base_url: Base URL of the Notion REST API.
        api_version: Value sent in the Notion-Version header.
        timeout: Request timeout in seconds.
        max_retries: Retry attempts for rate-limited or failed requests.
        retry_delay: Initial backoff delay in seconds (doubled per retry).
        requests_per_second: Upper bound on outgoing request rate.
        page_size: Page size used when listing block children.
        cache_ttl_seconds: Lifetime of cached page and block responses.
    """

    model_config = SettingsConfigDict(
        env_prefix="NOTION_",
        extra="ignore",
    )

    api_key: SecretStr = SecretStr("")
    base_url: str = "https://api.notion.com/v1"
    api_version: str = "2022-06-28"
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 1.0
    requests_per_second: float = 8.0
    page_size: int = Field(default=100, ge=1, le=100)
    cache_ttl_seconds: float = 60.0

    @property
    def auth_headers(self) -> dict[str, str]:
        """Build authentication headers for API requests."""
        return {
            "Authorization": f"Bearer {self.api_key.get_secret_value()}",
            "Notion-Version": self.api_version,
        }


class CurriculumSyncSettings(BaseSettings):
    """Curriculum sync behaviour.

    Attributes:
        enabled: Whether sync runs are allowed at all.
        catalog_path: YAML file listing the configured courses.
        max_block_depth: Deepest level of nested blocks fetched per lesson.
    """

    model_config = SettingsConfigDict(
        env_prefix="CURRICULUM_SYNC_",
        extra="ignore",
    )

    enabled: bool = True
    catalog_path: Path = Path("config/courses.yaml")
    max_block_depth: int = Field(default=3, ge=0)


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: Curriculum database settings.
        redis: Redis settings.
        notion: Notion API settings.
        curriculum_sync: Sync behaviour settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    notion: NotionSettings = Field(default_factory=NotionSettings)
    curriculum_sync: CurriculumSyncSettings = Field(default_factory=CurriculumSyncSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production without a Notion token.
        """
        if self.environment == "production" and self.curriculum_sync.enabled:
            if not self.notion.api_key.get_secret_value():
                raise ValueError(
                    "Notion API key must be set in production. "
                    "Set NOTION_API_KEY environment variable."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
