"""
Shared configuration management for the Catalog Access Layer.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = "local"
    log_level: str = "info"

    # Data source
    data_source: Literal["memory", "http"] = "memory"
    data_source_url: str = "http://localhost:5132"
    request_timeout_seconds: float = Field(default=10.0, gt=0)

    # Cache expiration
    absolute_ttl_seconds: float = Field(default=300.0, gt=0)
    sliding_ttl_seconds: float = Field(default=120.0, gt=0)
    cache_shards: int = Field(default=16, ge=1)
    sweep_interval_seconds: float = Field(default=60.0, gt=0)

    # Retry / backoff
    max_retries: int = Field(default=3, ge=1)
    base_backoff_delay: float = Field(default=1.0, ge=0)
    backoff_multiplier: float = Field(default=1.0, gt=0)
    backoff_strategy: Literal["linear", "exponential", "fixed"] = "linear"
    max_backoff_delay: float = Field(default=30.0, ge=0)
    backoff_jitter: bool = False


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
