"""
Shared configuration management for the University Directory Gateway.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="DIRECTORY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Upstream directory service
    upstream_base_url: str = Field(default="http://universities.hipolabs.com/search")
    upstream_timeout_seconds: float = Field(default=5.0, gt=0)
    upstream_user_agent: str = Field(default="UniversitySearchApp/1.0")

    # Cache
    cache_ttl_seconds: float = Field(default=15 * 60, gt=0)

    # CORS
    cors_allowed_origins: List[str] = Field(default_factory=lambda: ["*"])


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "directory"
    host: str = "0.0.0.0"
    port: int = 3000


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
