"""
Configuration Management for TaskBoard
======================================

This module handles all application configuration using the Settings pattern
with Pydantic. This approach provides:

1. **Environment Variable Support**: Easy deployment configuration
2. **Validation**: Catches configuration errors at startup
3. **Defaults**: Sensible defaults for development

Design Pattern: Singleton-like Settings
We use a cached function to ensure we only load settings once,
but still allow for easy testing with different configurations.
"""

from functools import lru_cache
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


DEFAULT_JWT_SECRET = "taskboard-dev-secret-change-me"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables are prefixed with TASKBOARD_ to avoid conflicts.
    Example: TASKBOARD_STORAGE_BACKEND=redis

    Priority order (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values defined here
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =================================================================
    # API Server Configuration
    # =================================================================
    api_host: str = Field(
        default="127.0.0.1",
        description="Interface the API server binds to"
    )

    api_port: int = Field(
        default=5000,
        description="Port the API server listens on"
    )

    api_debug: bool = Field(
        default=False,
        description="Include exception details in 500 responses"
    )

    cors_origins: list[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Origins allowed to call the API from a browser"
    )

    cors_allow_credentials: bool = Field(
        default=True,
        description="Whether CORS responses allow credentials"
    )

    # =================================================================
    # Authentication
    # =================================================================
    jwt_secret_key: str = Field(
        default=DEFAULT_JWT_SECRET,
        description="""
        Secret used to sign bearer tokens.

        Anyone holding this value can mint valid tokens, so production
        deployments must override it.
        """
    )

    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )

    jwt_access_token_expire_minutes: Optional[int] = Field(
        default=None,
        ge=1,
        description="""
        Token lifetime in minutes.

        None issues tokens without an 'exp' claim: they stay valid for as
        long as the client keeps them.
        """
    )

    password_hash_rounds: int = Field(
        default=12,
        ge=4,
        le=31,
        description="bcrypt cost factor for password hashing"
    )

    password_min_length: int = Field(
        default=6,
        ge=1,
        description="Minimum accepted password length at registration"
    )

    # =================================================================
    # Storage Configuration
    # =================================================================
    storage_backend: Literal["memory", "redis"] = Field(
        default="memory",
        description="""
        Document store backing users and tasks.

        - memory: process-local dictionaries, lost on restart (development, tests)
        - redis: JSON documents in Redis hashes (persistent)
        """
    )

    redis_host: str = Field(default="localhost", description="Redis host")
    redis_port: int = Field(default=6379, description="Redis port")
    redis_db: int = Field(default=0, description="Redis database index")
    redis_password: Optional[str] = Field(default=None, description="Redis password")
    redis_key_prefix: str = Field(
        default="taskboard",
        description="Prefix for every Redis key written by the stores"
    )

    # =================================================================
    # Rate Limiting
    # =================================================================
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable per-IP rate limiting on the auth endpoints"
    )

    auth_rate_limit: str = Field(
        default="20/minute",
        description="slowapi limit string applied to register and login"
    )

    # =================================================================
    # Client Configuration
    # =================================================================
    api_base_url: str = Field(
        default="http://localhost:5000",
        description="Base URL the client and CLI talk to"
    )

    session_file: str = Field(
        default="~/.taskboard/session.json",
        description="Durable file where the client keeps its token"
    )

    # =================================================================
    # Logging Configuration
    # =================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Python logging format string"
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached singleton).

    For testing, you can clear the cache:
        get_settings.cache_clear()

    Returns:
        Settings: Application settings instance
    """
    return Settings()


def get_settings_for_testing(**overrides) -> Settings:
    """
    Create a Settings instance with custom values for testing.

    Example:
        settings = get_settings_for_testing(
            jwt_access_token_expire_minutes=5,
            password_hash_rounds=4
        )

    Args:
        **overrides: Setting values to override

    Returns:
        Settings: New Settings instance with overrides applied
    """
    return Settings(**overrides)
