"""Configuration management for the Mini App backend."""

from typing import Any, List

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    DATABASE_URL: str

    # Sentry Configuration
    SENTRY_DSN: str | None = None

    # Application Configuration
    APP_NAME: str = "M7 Mini App"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"
    DEBUG: bool = Field(default=False)

    # API Configuration
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Moderation Configuration
    MODERATOR_USERNAMES: str | None = None
    REPORT_THRESHOLD: int = 3

    # Dating Configuration
    MATCH_PROFILE_RECENCY_DAYS: int = 90
    FEED_DEFAULT_LIMIT: int = 20
    FEED_MAX_LIMIT: int = 50

    # Listings Configuration
    CONTACT_PRICE_CENTS: int = 5000
    CONTACT_CURRENCY: str = "RUB"
    PROFILE_LISTINGS_LIMIT: int = 50

    @field_validator("DEBUG", mode="before")
    @classmethod
    def set_debug(cls, v: Any, info: ValidationInfo) -> bool:
        """Enable debug mode if ENVIRONMENT is development."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str) and v.strip():
            return v.strip().lower() in ("1", "true", "yes", "on")
        return bool(info.data.get("ENVIRONMENT", "").lower() == "development")

    def get_moderator_usernames(self) -> List[str]:
        """Get moderator usernames, lowercased and without a leading '@'."""
        if not self.MODERATOR_USERNAMES:
            return []
        usernames = (item.strip().lstrip("@").lower() for item in self.MODERATOR_USERNAMES.split(","))
        return [name for name in usernames if name]

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore")


# Create a global settings instance
settings = Settings()  # type: ignore


def get_settings() -> Settings:
    """Return the settings instance."""
    return settings
