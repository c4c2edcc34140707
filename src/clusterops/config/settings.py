"""
Application settings using Pydantic.

Provides environment-based configuration loading with CLUSTEROPS_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Control-plane API
    api_url: str = "http://localhost:8080"
    api_token: str | None = None
    auth_scheme: str = "Bearer"
    scope: str = "cluster"

    # HTTP client settings
    http_timeout: float = 30.0

    # Provisioning
    create_timeout: float = 3600.0
    poll_interval: float = 30.0

    # Local state
    state_file: str = "clusterops.state.json"

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "CLUSTEROPS_"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
