from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ==========================================================================
    # MongoDB Configuration
    # ==========================================================================
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "collegehub"

    # ==========================================================================
    # JWT Configuration
    # ==========================================================================
    jwt_secret: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7
    password_reset_expire_minutes: int = 60

    # ==========================================================================
    # Rate Limiting
    # ==========================================================================
    rate_limit_per_minute: int = 100
    rate_limit_auth_per_minute: int = 300

    # ==========================================================================
    # Review Moderation
    # ==========================================================================
    blocked_words: str = "badword1,badword2"

    @property
    def blocked_words_list(self) -> List[str]:
        """Parse comma-separated blocked words into a lowercase list."""
        return [w.strip().lower() for w in self.blocked_words.split(",") if w.strip()]

    # ==========================================================================
    # Application Settings
    # ==========================================================================
    api_v1_str: str = "/api/v1"
    debug: bool = True
    cors_origins: str = "http://localhost:3000"
    max_page_size: int = 100

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse comma-separated CORS origins into list."""
        if self.cors_origins == "*":
            return ["*"]
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", case_sensitive=False
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to avoid re-reading env vars on every request.
    """
    return Settings()


settings = get_settings()
