"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

The COS_* names match the variables the service has always been deployed with.
Mock mode enables local development without a storage bucket.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like cors_origins), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Video Server API"
    api_version: str = "1.0.0"
    environment: str = Field(
        default="development",
        description="Deployment environment name, echoed by the health check"
    )
    host: str = Field(default="0.0.0.0", description="Interface to bind")
    port: int = Field(default=3000, description="Listening port")

    # Tencent Cloud COS (S3-compatible) Configuration
    cos_secret_id: str = Field(
        default="",
        description="COS SecretId. Required unless in mock mode."
    )
    cos_secret_key: str = Field(
        default="",
        description="COS SecretKey. Required unless in mock mode."
    )
    cos_bucket_name: str = Field(
        default="video-bucket",
        description="Bucket holding uploaded videos (COS names include the APPID suffix)"
    )
    cos_region: str = Field(
        default="ap-beijing",
        description="COS region of the bucket"
    )
    cos_endpoint_url: Optional[str] = Field(
        default=None,
        description="S3-compatible endpoint. Auto-constructed from region if not provided."
    )
    cos_public_base_url: Optional[str] = Field(
        default=None,
        description="Base of playable URLs. Defaults to the bucket's public COS domain."
    )
    cos_key_prefix: str = Field(
        default="videos/",
        description="Prefix under which objects are stored"
    )
    cos_connect_timeout: Optional[float] = Field(
        default=None,
        description="Connect timeout in seconds for storage calls. None keeps botocore's default."
    )
    cos_read_timeout: Optional[float] = Field(
        default=None,
        description="Read timeout in seconds for storage calls. None keeps botocore's default."
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real COS. Enables local dev without object storage."
    )

    # Upload Policy
    max_upload_size_mb: int = Field(
        default=100,
        description="Maximum upload size in MB."
    )
    allowed_video_types: str = Field(
        default="video/mp4,video/webm,video/ogg,video/quicktime,video/x-msvideo,video/avi,video/mov,video/mkv",
        description="Comma-separated content types accepted in addition to video/*."
    )
    accept_any_video_type: bool = Field(
        default=True,
        description="Accept any content type whose primary type is video."
    )
    required_content_type: Optional[str] = Field(
        default=None,
        description="Single-format mode: the only accepted content type (e.g. video/mp4)."
    )
    required_extension: Optional[str] = Field(
        default=None,
        description="Single-format mode: the only accepted file extension (e.g. .mp4)."
    )
    allow_unicode_filenames: bool = Field(
        default=True,
        description="Keep CJK characters when sanitizing filenames."
    )

    # Store Behaviour
    list_newest_first: bool = Field(
        default=False,
        description="List most recent uploads first instead of insertion order."
    )
    strict_backend_delete: bool = Field(
        default=False,
        description="Keep the record and fail the request when the storage delete fails."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins. Use * to allow any origin."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def allowed_video_types_list(self) -> list[str]:
        """Parse comma-separated content types into a normalized list."""
        return [
            content_type.strip().lower()
            for content_type in self.allowed_video_types.split(",")
            if content_type.strip()
        ]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def cos_endpoint(self) -> str:
        """
        S3-compatible endpoint for the bucket's region.

        COS exposes the S3 API at https://cos.{region}.myqcloud.com.
        """
        if self.cos_endpoint_url:
            return self.cos_endpoint_url
        return f"https://cos.{self.cos_region}.myqcloud.com"

    @property
    def cos_public_base(self) -> str:
        """Public (unsigned) base URL objects are served from."""
        if self.cos_public_base_url:
            return self.cos_public_base_url.rstrip("/")
        return f"https://{self.cos_bucket_name}.cos.{self.cos_region}.myqcloud.com"

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        This is separate from Pydantic validation because requirements
        depend on whether we're in mock mode.
        """
        missing = []

        if not self.storage_mock_mode:
            if not self.cos_secret_id:
                missing.append("COS_SECRET_ID")
            if not self.cos_secret_key:
                missing.append("COS_SECRET_KEY")
            if not self.cos_bucket_name:
                missing.append("COS_BUCKET_NAME")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
