"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from media_vault.lib.storage.types import StorageConfig

_BACKENDS = ("relational", "flat-file")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str | None = Field(
        default=None,
        description="Async SQLAlchemy connection string for the relational metadata index",
    )

    # Storage
    storage_backend: str = Field(
        default="relational",
        description="Metadata index backend: relational or flat-file",
    )

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        normalized = v.strip().lower().replace("_", "-")
        if normalized not in _BACKENDS:
            msg = f"Invalid storage_backend: must be one of {', '.join(_BACKENDS)}"
            raise ValueError(msg)
        return normalized

    storage_path: str = Field(
        default="./storage",
        description="Root directory for stored media, thumbnails and flat-file metadata",
    )
    max_upload_size_mb: int = Field(
        default=500,
        description="Maximum accepted upload size in megabytes",
        gt=0,
    )
    available_space_bytes: int = Field(
        default=100 * 1024 * 1024 * 1024,
        description="Reported available space; free-space probing is not performed",
        ge=0,
    )

    # Thumbnails
    thumbnail_width: int = Field(default=300, description="Thumbnail width in pixels", gt=0)
    thumbnail_height: int = Field(default=300, description="Thumbnail height in pixels", gt=0)
    thumbnail_quality: int = Field(
        default=80,
        description="JPEG quality for generated thumbnails",
        ge=1,
        le=95,
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )
    log_json: bool = Field(default=False, description="Emit stderr logs as JSON lines")

    def to_storage_config(self) -> StorageConfig:
        """Build the storage adapter configuration from these settings."""
        from media_vault.lib.storage.types import StorageConfig

        return StorageConfig(
            root=Path(self.storage_path),
            thumbnail_width=self.thumbnail_width,
            thumbnail_height=self.thumbnail_height,
            thumbnail_quality=self.thumbnail_quality,
            max_file_size=self.max_upload_size_mb * 1024 * 1024,
            available_space=self.available_space_bytes,
        )


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
