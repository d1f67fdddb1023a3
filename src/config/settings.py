# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings: compression
defaults, remote optimizer credentials, persistence backends and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Runtime ===
    environment: Literal["development", "production"] = "development"

    # === Compression ===
    default_strategy: Literal["local", "remote"] = "remote"
    compression_quality: int = 40
    max_width: int = 1200
    max_height: int = 1200
    local_default_format: Literal["webp", "png", "jpeg"] = "webp"
    quality_threshold_bytes: int = 0
    small_image_quality: int | None = None

    # === Remote optimizer (Tinify-compatible API) ===
    tinify_api_key: str = ""
    tinify_api_url: str = "https://api.tinify.com"

    # === HTTP ===
    http_timeout_seconds: float = 30.0
    http_user_agent: str = (
        "Mozilla/5.0 (compatible; imageboost/0.4; +https://imageboost.app)"
    )

    # === Blob storage ===
    blob_backend: Literal["local", "s3"] = "local"
    blob_root: Path = Path("~/.imageboost/blobs")
    blob_public_base_url: str = ""
    blob_s3_bucket: str = ""
    blob_s3_prefix: str = "imageboost/"
    blob_s3_region: str = ""
    blob_s3_endpoint_url: str = ""

    # === Record storage ===
    record_backend: Literal["json", "sqlite", "redis"] = "json"
    record_root: Path = Path("~/.imageboost/records")
    record_redis_url: str = ""

    # === Origin platform ===
    shopify_api_version: str = "2025-01"

    # === Original archive ===
    archive_on_every_compress: bool = False

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("compression_quality", "small_image_quality")
    @classmethod
    def validate_quality(cls, v: int | None) -> int | None:  # noqa: N805
        """Quality must lie in 1..100."""
        if v is not None and not 1 <= v <= 100:
            raise ValueError("quality must be between 1 and 100")
        return v

    @field_validator("max_width", "max_height")
    @classmethod
    def validate_dimension(cls, v: int) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError("max dimensions must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.blob_backend == "s3" and not self.blob_s3_bucket:
            errors.append("BLOB_S3_BUCKET must be set when BLOB_BACKEND=s3")

        if self.record_backend == "redis" and not self.record_redis_url:
            errors.append(
                "RECORD_REDIS_URL must be set when RECORD_BACKEND=redis"
            )

        if self.quality_threshold_bytes < 0:
            errors.append("QUALITY_THRESHOLD_BYTES must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-request config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
