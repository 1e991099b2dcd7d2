"""Configuration management using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="VIDCLOAK_",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = Field(default="0.0.0.0", description="Interface to listen on")
    port: int = Field(default=8787, ge=1, le=65535, description="Port to listen on")
    log_level: str = Field(default="INFO", description="Logging level")
    allowed_domains: list[str] = Field(
        default_factory=list,
        description="Hostname substrings an origin must contain; empty allows every host",
    )
    expose_error_detail: bool = Field(
        default=True,
        description="Include the underlying error text in 500 responses",
    )
    chunk_size: int = Field(default=64 * 1024, ge=1024, description="Relay chunk size in bytes")
    origin_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Total origin request timeout in seconds; unset keeps the client default",
    )


@lru_cache
def get_settings() -> Settings:
    """Get the application settings instance."""
    return Settings()
