"""
Video Assets Configuration Management Module

This module provides configuration management for the video asset upload service
using Pydantic Settings. It loads and validates all environment variables required for:
- Application settings (name, environment, debug mode, logging)
- MongoDB connection for the video record store
- S3/MinIO object storage for promoted video files
- Local asset roots for staging and serving thumbnails
- JWT verification of bearer credentials

All settings support environment variable overrides and .env file loading.
"""

import tempfile

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuration settings for the video asset upload service.

    Configuration Categories:
    - Application: Core app settings like name, environment, debug mode
    - MongoDB: Database connection URI and connection pool settings
    - S3/MinIO: Object storage credentials and bucket configuration
    - Assets: Local directories and the public base URL for served thumbnails
    - Auth: JWT verification parameters

    Example usage:
        ```python
        from video_assets.config import Settings

        settings = Settings()
        print(f"Serving thumbnails from: {settings.assets_root}")
        ```
    """

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(
        default="VIDEO-ASSETS",
        description="Application name displayed in API documentation and logs",
    )

    app_env: str = Field(
        default="development",
        description="Application environment (development, staging, production, testing)",
    )

    debug: bool = Field(default=True, description="Enable debug mode with hot-reload")

    log_level: str = Field(
        default="info", description="Logging level (debug, info, warning, error, critical)"
    )

    json_logs: bool = Field(
        default=False, description="Emit structured JSON log lines instead of plain text"
    )

    log_to_file: bool = Field(
        default=False, description="Also write logs to a size-rotated file under log_dir"
    )

    log_dir: str = Field(default="logs", description="Directory for the rotating log file")

    log_filename: str = Field(default="video_assets.log", description="Rotating log file name")

    secret_key: str = Field(
        default="development-secret-key-change-in-production-32chars",
        description="Secret key used to verify HS256 bearer tokens",
        min_length=32,
    )

    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")

    host: str = Field(default="0.0.0.0", description="Host address for the API server to bind to")

    port: int = Field(default=8091, description="Port number for the API server", ge=1, le=65535)

    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="List of allowed CORS origins for frontend access",
    )

    # =========================================================================
    # MongoDB Configuration
    # =========================================================================

    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI (e.g., mongodb://localhost:27017)",
    )

    mongodb_db_name: str = Field(default="video_assets", description="MongoDB database name")

    mongodb_min_pool_size: int = Field(
        default=10, description="Minimum number of connections in MongoDB connection pool", ge=1
    )

    mongodb_max_pool_size: int = Field(
        default=100, description="Maximum number of connections in MongoDB connection pool", ge=1
    )

    # =========================================================================
    # S3/MinIO Storage Configuration
    # =========================================================================

    s3_endpoint_url: str | None = Field(
        default=None, description="S3-compatible endpoint URL for MinIO (None for AWS S3)"
    )

    s3_access_key_id: str | None = Field(
        default=None, description="S3/MinIO access key ID (None to use the default chain)"
    )

    s3_secret_access_key: str | None = Field(
        default=None, description="S3/MinIO secret access key"
    )

    s3_bucket_name: str = Field(
        default="video-assets", description="S3 bucket name for promoted video files"
    )

    s3_region: str = Field(default="us-east-1", description="AWS region for the S3 bucket")

    s3_max_attempts: int = Field(
        default=3, description="Retry attempts for S3 calls (botocore standard mode)", ge=1
    )

    s3_read_timeout_seconds: int = Field(
        default=60, description="Socket read timeout for S3 calls in seconds", ge=1
    )

    # =========================================================================
    # Local Asset Roots
    # =========================================================================

    assets_root: Path = Field(
        default=Path("./assets"),
        description="Directory holding promoted thumbnails, served under /assets",
    )

    staging_root: Path = Field(
        default=Path(tempfile.gettempdir()) / "video-assets-staging",
        description="Directory for ephemeral staging files",
    )

    public_base_url: str = Field(
        default="http://localhost:8091",
        description="Externally reachable base URL used to build thumbnail URLs",
    )

    # =========================================================================
    # Model Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"debug", "info", "warning", "error", "critical"}
        normalized = v.lower()
        if normalized not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {', '.join(valid_levels)}")
        return normalized

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate that app_env is a valid environment name."""
        valid_envs = {"development", "staging", "production", "testing"}
        normalized = v.lower()
        if normalized not in valid_envs:
            raise ValueError(f"Invalid app_env '{v}'. Must be one of: {', '.join(valid_envs)}")
        return normalized

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Validate that jwt_algorithm is a supported symmetric algorithm."""
        valid_algorithms = {"HS256", "HS384", "HS512"}
        if v.upper() not in valid_algorithms:
            raise ValueError(
                f"Invalid jwt_algorithm '{v}'. Must be one of: {', '.join(valid_algorithms)}"
            )
        return v.upper()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string if provided as string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("public_base_url")
    @classmethod
    def validate_public_base_url(cls, v: str) -> str:
        """Require an absolute http(s) URL and drop any trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"public_base_url must be an absolute http(s) URL, got '{v}'")
        return v.rstrip("/")

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def uses_custom_s3_endpoint(self) -> bool:
        """True when an S3-compatible endpoint (MinIO, Ceph) replaces AWS S3."""
        return bool(self.s3_endpoint_url)


@lru_cache
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    The @lru_cache decorator ensures that the Settings object is created only
    once on first call, and subsequent calls return the cached instance without
    re-reading environment variables or .env files.

    Returns:
        Settings: The global configuration instance.
    """
    return Settings()
