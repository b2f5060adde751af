"""Application settings loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class SubscriptionConfig(BaseModel):
    """Configuration for subscription lifecycle and expiry alerts."""

    renewal_days: int = 30
    """Length of the subscription window granted at creation or renewal."""

    alert_default_window_days: int = 7
    """Window used by the alert view when the caller does not pass one."""

    alert_max_window_days: int = 30
    """Upper bound for the alert window; requests are clamped to [1, max]."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    ENVIRONMENT: Literal["development", "test", "staging", "production"] = "development"
    DEBUG: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./hotelops.db"
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10

    # Authentication
    JWT_SECRET: SecretStr = SecretStr("change-me-in-production-please-32chars")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_TTL_MINUTES: int = 15

    # HTTP
    CORS_ORIGINS: list[str] = []
    TRUSTED_ORIGINS: list[str] = []

    # Hotels
    NOTIFICATIONS_LOG_LIMIT: int = 50

    # Subscription lifecycle
    subscription: SubscriptionConfig = SubscriptionConfig()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
