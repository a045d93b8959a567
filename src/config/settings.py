"""
Application settings - pydantic-settings configuration.

This module defines application configuration using pydantic-settings
for environment variable loading with validation and defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Identity Store connection
    identity_base_url: str = "http://localhost:3000/api"
    request_timeout_seconds: float = 30.0  # Client-side budget per network call

    # Verification codes
    resend_cooldown_seconds: int = 60  # Wait between resend requests
    code_length: int = 6

    # Client contexts (one per browser tab, in memory)
    context_idle_seconds: float = 1800.0  # Dropped after this long without a request
    max_client_contexts: int = 10_000

    # Field bounds
    username_min_length: int = 3
    username_max_length: int = 50
    password_min_length: int = 6
    password_max_length: int = 100
    full_name_max_length: int = 100


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
