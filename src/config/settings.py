"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

The storage gateway never reads the environment itself. Settings builds
an immutable StorageConfig and hands it over.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..infrastructure.storage.client import StorageConfig


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like api_keys), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Tomato Storage Gateway"
    api_version: str = "v1"
    api_keys: str = Field(
        default="dev-key-1,dev-key-2",
        description="Comma-separated API keys. Using a list enables key rotation without downtime."
    )

    # MinIO Configuration
    minio_endpoint: str = Field(
        default="localhost",
        description="MinIO host name, without scheme or port"
    )
    minio_port: int = Field(
        default=9000,
        description="MinIO API port"
    )
    minio_use_ssl: bool = Field(
        default=False,
        description="Talk to MinIO over HTTPS"
    )
    minio_access_key: str = Field(
        default="minioadmin",
        description="MinIO access key"
    )
    minio_secret_key: str = Field(
        default="minioadmin",
        description="MinIO secret key"
    )
    minio_bucket_name: str = Field(
        default="tomato-manager",
        description="Bucket holding all uploaded files. Created at startup if missing."
    )
    minio_external_url: Optional[str] = Field(
        default=None,
        description="Public base URL of the reverse proxy (e.g. https://files.example.com). "
                    "When set, returned URLs point at <base>/minio instead of the internal endpoint."
    )
    minio_region: str = Field(
        default="us-east-1",
        description="Region used for signing and bucket creation"
    )

    # Application Behavior
    max_upload_size_mb: int = Field(
        default=50,
        description="Maximum size of a single uploaded file in MB."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("minio_use_ssl", mode="before")
    @classmethod
    def _ssl_only_when_true(cls, value: object) -> bool:
        # only the literal "true" turns SSL on; anything else means off
        if isinstance(value, bool):
            return value
        return isinstance(value, str) and value.strip() == "true"

    @field_validator("minio_external_url")
    @classmethod
    def _blank_external_url_is_unset(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()

    @property
    def api_keys_list(self) -> list[str]:
        """Parse comma-separated API keys into a list."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    def storage_config(self) -> StorageConfig:
        """Build the immutable storage configuration for the gateway."""
        return StorageConfig(
            endpoint=self.minio_endpoint,
            port=self.minio_port,
            use_ssl=self.minio_use_ssl,
            access_key=self.minio_access_key,
            secret_key=self.minio_secret_key,
            bucket_name=self.minio_bucket_name,
            external_base_url=self.minio_external_url,
            region=self.minio_region,
        )

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set.

        Returns list of missing required fields. Every MinIO value has a
        default, so this only trips when one is explicitly blanked.
        """
        missing = []

        if not self.minio_endpoint:
            missing.append("MINIO_ENDPOINT")
        if not self.minio_access_key:
            missing.append("MINIO_ACCESS_KEY")
        if not self.minio_secret_key:
            missing.append("MINIO_SECRET_KEY")
        if not self.minio_bucket_name:
            missing.append("MINIO_BUCKET_NAME")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    This is safe because settings don't change during runtime.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
