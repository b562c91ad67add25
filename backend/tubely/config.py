"""
Tubely Configuration Management Module

Loads and validates the environment for the Tubely backend using Pydantic
Settings:
- Application settings (name, environment, debug mode, logging)
- MongoDB connection and pooling
- S3/MinIO object storage and signed URL lifetime
- Local JWT authentication
- Upload ceilings and the supported video container tokens
- External media tool locations (ffprobe, ffmpeg)

Settings are read once through ``get_settings()`` and handed to the FastAPI
dependency factories. Pipeline components never read them directly; they
receive plain values in their constructors.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuration settings for the Tubely backend.

    Every field can be overridden through an environment variable of the
    same name (case-insensitive) or a ``.env`` file.

    Example usage:
        ```python
        from tubely.config import get_settings

        settings = get_settings()
        print(f"Storing videos in bucket: {settings.s3_bucket_name}")
        ```
    """

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(default="tubely", description="Application name used in docs and logs")

    app_env: str = Field(
        default="development",
        description="Application environment (development, staging, production, testing)",
    )

    debug: bool = Field(default=True, description="Enable debug mode and hot-reload")

    log_level: str = Field(
        default="info", description="Logging level (debug, info, warning, error, critical)"
    )

    json_logs: bool = Field(
        default=False, description="Emit structured JSON logs instead of plain text"
    )

    secret_key: str = Field(
        default="development-secret-key-change-in-production-32chars",
        description="Secret key for JWT signing. Must be a secure random string.",
        min_length=32,
    )

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

    mongodb_db_name: str = Field(default="tubely", description="MongoDB database name")

    mongodb_min_pool_size: int = Field(
        default=1, description="Minimum number of connections in the MongoDB pool", ge=0
    )

    mongodb_max_pool_size: int = Field(
        default=50, description="Maximum number of connections in the MongoDB pool", ge=1
    )

    # =========================================================================
    # S3/MinIO Storage Configuration
    # =========================================================================

    s3_endpoint_url: str | None = Field(
        default=None, description="S3-compatible endpoint URL for MinIO (None for AWS S3)"
    )

    s3_access_key_id: str = Field(
        default="minioadmin", description="S3/MinIO access key ID for authentication"
    )

    s3_secret_access_key: str = Field(
        default="minioadmin", description="S3/MinIO secret access key for authentication"
    )

    s3_bucket_name: str = Field(
        default="tubely-videos", description="S3 bucket that receives processed videos"
    )

    s3_region: str = Field(default="us-east-1", description="AWS region for the S3 bucket")

    signed_url_ttl_seconds: int = Field(
        default=60,
        description="Lifetime of presigned video URLs issued on read, in seconds",
        ge=1,
        le=604800,
    )

    # =========================================================================
    # Authentication Configuration
    # =========================================================================

    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")

    jwt_expiration_hours: int = Field(
        default=24, description="JWT token expiration time in hours", ge=1, le=168
    )

    # =========================================================================
    # Upload Settings
    # =========================================================================

    max_video_upload_bytes: int = Field(
        default=1 << 30, description="Maximum video upload body size in bytes (1 GiB)", ge=1
    )

    max_thumbnail_upload_bytes: int = Field(
        default=10 << 20, description="Maximum thumbnail upload body size in bytes (10 MiB)", ge=1
    )

    upload_chunk_size_bytes: int = Field(
        default=1 << 20, description="Chunk size used when staging uploads to disk", ge=1024
    )

    allowed_video_tokens: list[str] = Field(
        default=["mp4", "mkv"],
        description="Tokens a video Content-Type must contain to be accepted",
    )

    staging_dir: str | None = Field(
        default=None,
        description="Directory for per-upload scratch space (system temp dir when unset)",
    )

    # =========================================================================
    # External Media Tools
    # =========================================================================

    ffprobe_path: str = Field(default="ffprobe", description="ffprobe executable")

    ffmpeg_path: str = Field(default="ffmpeg", description="ffmpeg executable")

    media_tool_timeout_seconds: float | None = Field(
        default=None,
        description="Optional wall-clock limit for a single ffprobe/ffmpeg run",
        gt=0,
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
        """Only HMAC algorithms are supported for locally issued tokens."""
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

    @field_validator("allowed_video_tokens", mode="before")
    @classmethod
    def validate_allowed_video_tokens(cls, v: str | list[str]) -> list[str]:
        """Accept a comma-separated string and normalize tokens to lowercase."""
        if isinstance(v, str):
            v = v.split(",")
        tokens = [token.strip().lower() for token in v if token.strip()]
        if not tokens:
            raise ValueError("allowed_video_tokens must contain at least one token")
        return tokens


@lru_cache
def get_settings() -> Settings:
    """
    Get the process-wide Settings instance.

    The first call reads the environment and ``.env``; later calls return
    the cached object. FastAPI routes receive it through ``Depends`` so
    tests can override it.
    """
    return Settings()
