"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str = "postgresql+asyncpg://storefront:storefront_dev_password@db:5432/storefront"

    # Serve from a JSON fixture instead of the database (local runs)
    catalog_fixture_path: str | None = None

    # Query layer
    catalog_query_timeout_seconds: float = 10.0
    catalog_routes_timeout_seconds: float | None = None
    catalog_scan_batch_size: int = 2000
    catalog_max_concurrency: int = 8

    # HTTP caching
    search_cache_max_age: int = 600
    prefetch_cache_max_age: int = 3600

    # Logging
    log_level: str = "INFO"
    log_json: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
