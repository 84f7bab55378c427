"""Application configuration using pydantic-settings.

All environment variables should be accessed through the settings object
rather than using os.getenv() directly.
"""

import warnings
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "change-me-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./data/foodbank.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_recycle_seconds: int = 3600

    # Security
    secret_key: str = DEFAULT_SECRET_KEY
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 240

    # CORS - comma-separated origins
    cors_origins: str = "http://localhost:3000"

    # Server
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API
    api_v1_prefix: str = "/api/v1"

    # Rate limiting
    rate_limit_enabled: bool = True
    decision_rate_limit: str = "30/minute"

    # ==========================================================================
    # Notifications (outbound webhook; unset = log only)
    # ==========================================================================
    notification_webhook_url: Optional[str] = None
    notification_timeout_seconds: float = 10.0
    request_action_url: str = "/user/requests"

    # ==========================================================================
    # Inventory allocation
    # ==========================================================================
    allocation_conflict_retries: int = 3

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        if v == DEFAULT_SECRET_KEY:
            warnings.warn(
                "Using default SECRET_KEY is insecure! Set SECRET_KEY environment variable.",
                UserWarning,
                stacklevel=2,
            )
        return v

    @field_validator("allocation_conflict_retries")
    @classmethod
    def validate_conflict_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("ALLOCATION_CONFLICT_RETRIES must be zero or positive")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Refuse insecure defaults outside debug mode."""
        if not self.debug and self.secret_key == DEFAULT_SECRET_KEY:
            raise ValueError(
                "FATAL: Cannot start in production mode with default SECRET_KEY. "
                "Set a secure SECRET_KEY environment variable."
            )
        return self

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
