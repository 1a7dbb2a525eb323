"""
Application Configuration
"""
from functools import lru_cache
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import model_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    # Application
    APP_NAME: str = "ClaimDesk"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False  # Secure default
    SECRET_KEY: str = "change-me-in-production"

    # Database
    DATABASE_URL: str = "sqlite:///./claimdesk.db"
    DATABASE_ECHO: bool = False

    # JWT (caller identity only; tokens are issued elsewhere)
    JWT_ALGORITHM: str = "HS256"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Dashboard
    RECENT_ITEMS_LIMIT: int = 5

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate critical settings for non-development environments."""
        if self.APP_ENV != "development":
            if self.SECRET_KEY == "change-me-in-production":
                raise ValueError(
                    "SECRET_KEY must be changed from default value in production/staging environments. "
                    "Set a secure, random SECRET_KEY in your .env file or environment variables."
                )

            if self.DEBUG:
                import warnings
                warnings.warn(
                    "DEBUG mode is enabled in a non-development environment. "
                    "This is not recommended for production.",
                    UserWarning,
                )

        if self.RECENT_ITEMS_LIMIT < 0:
            raise ValueError("RECENT_ITEMS_LIMIT cannot be negative")

        return self


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()


settings = get_settings()
