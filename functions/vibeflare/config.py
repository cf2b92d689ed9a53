"""
Configuration and settings for the CMS service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")

    # Key-value store for pages (Redis)
    redis_url: Optional[str] = Field(default=None)
    page_key_prefix: str = Field(default="page:")

    # Relational store (any SQLAlchemy URL)
    database_url: Optional[str] = Field(default=None)

    # S3-compatible blob storage (R2, COS, MinIO)
    s3_endpoint: Optional[str] = Field(default=None)
    s3_region: Optional[str] = Field(default=None)
    s3_bucket: Optional[str] = Field(default=None)
    s3_addressing_style: str = Field(default="auto")
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Rendering
    site_title: str = Field(default="VibeFlare CMS")
    styles_slug: str = Field(default="styles")
    autosave_interval_seconds: int = Field(default=30, ge=0)
    asset_cache_control: str = Field(
        default="public, max-age=31536000, immutable"
    )

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="VIBEFLARE_USE_IN_MEMORY_BACKENDS"
    )
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
