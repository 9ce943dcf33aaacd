"""
Configuration management using Pydantic Settings.

This module provides type-safe, validated configuration loading from environment
variables prefixed with ``CASBIN_COSMOS_``.

Architecture:
- Flat Settings structure (no nesting)
- All config loaded from environment variables (or a .env file)
- Type validation via Pydantic
- Explicit keyword arguments to the adapter always win over settings

Usage:
    from casbin_cosmosdb_adapter.core.config import get_settings

    settings = get_settings()
    adapter = Adapter(
        settings.connection_string,
        database=settings.database_name,
        collection=settings.collection_name,
    )
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from casbin_cosmosdb_adapter.core.enums import Environment

DEFAULT_DATABASE_NAME = "casbin"
DEFAULT_COLLECTION_NAME = "casbin_rule"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """
    Adapter settings (flat structure).

    Configuration precedence:
        1. Keyword arguments passed to the adapter
        2. Environment variables (CASBIN_COSMOS_*)
        3. Default values

    Returns:
        Settings: Adapter configuration loaded from environment.
    """

    # Environment detection
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Runtime environment (development, testing, ci, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # Cosmos DB configuration
    connection_string: str | None = Field(
        default=None,
        description="Cosmos DB connection string "
        "(AccountEndpoint=https://...;AccountKey=...;)",
    )
    database_name: str = Field(
        default=DEFAULT_DATABASE_NAME,
        description="Database holding the policy container",
    )
    collection_name: str = Field(
        default=DEFAULT_COLLECTION_NAME,
        description="Container (collection) holding one document per policy rule",
    )
    max_item_count: int | None = Field(
        default=None,
        description="Page size for reads and queries (None = service default)",
    )

    model_config = SettingsConfigDict(
        env_prefix="CASBIN_COSMOS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Normalize and validate the log level name.

        Args:
            v: Log level name (any case).

        Returns:
            str: Upper-cased log level name.

        Raises:
            ValueError: If the level is not one of the five standard levels.
        """
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @field_validator("max_item_count")
    @classmethod
    def validate_max_item_count(cls, v: int | None) -> int | None:
        """
        Validate page size is positive.

        Args:
            v: Requested page size.

        Returns:
            int | None: Validated page size.

        Raises:
            ValueError: If page size is zero or negative.
        """
        if v is not None and v < 1:
            raise ValueError("max_item_count must be at least 1")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once per process.

    Returns:
        Settings: Cached settings instance.
    """
    return Settings()
