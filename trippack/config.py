"""Configuration management for the application."""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = Field(default="sqlite:///./trippack.db")

    # Redis (change notifications)
    redis_url: str = Field(default="redis://localhost:6379/0")

    # Sessions
    session_secret: str = Field(default="change-me-in-production")
    session_algorithm: str = Field(default="HS256")
    session_max_age_days: int = Field(default=30)
    session_cookie_name: str = Field(default="trippack_session")

    # Trips
    invite_code_bytes: int = Field(default=12)
    discover_public_only: bool = Field(default=True)

    # API
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate that production has secure settings."""
        if self.environment == "production":
            if self.session_secret == "change-me-in-production":  # noqa: S105
                raise ValueError("SESSION_SECRET must be changed in production")
            if "localhost" in self.database_url or self.database_url.startswith("sqlite"):
                raise ValueError("DATABASE_URL should point at a real database in production")
        return self

    @property
    def session_max_age_seconds(self) -> int:
        """Cookie max-age derived from the session lifetime."""
        return self.session_max_age_days * 24 * 60 * 60

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
