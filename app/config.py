"""Application configuration with environment separation."""
from functools import lru_cache
from enum import Enum
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = Field(default=True)
    log_level: str = Field(default="INFO")

    # App
    app_name: str = "Sports Stats Dashboard"
    api_prefix: str = "/api"
    port: int = Field(default=3000)

    # Security - stored as comma-separated string in .env
    allowed_origins: str = Field(default="http://localhost:3000,http://localhost:5173")

    # External APIs
    sports_api_key: str = Field(default="")
    gemini_api_key: str = Field(default="")
    gemini_model: str = Field(default="gemini-pro")
    upstream_timeout_seconds: float = Field(default=10.0)
    ai_timeout_seconds: float = Field(default=30.0)
    ai_context_max_chars: int = Field(default=12000)
    default_season: str = Field(default="2024")

    # Response cache
    cache_dir: Path = Field(default=Path("./cache"))
    cache_ttl_hours: float = Field(default=6.0)
    cache_max_entries: int = Field(default=256)

    # Rate limiting (fixed window, per client IP)
    rate_limit_window_seconds: int = Field(default=60)
    rate_limit_per_window: int = Field(default=100)
    ai_rate_limit_per_window: int = Field(default=20)
    rate_limit_max_identities: int = Field(default=10000)

    # Generated AI reports
    reports_dir: Path = Field(default=Path("./reports"))

    @field_validator("debug", mode="before")
    @classmethod
    def set_debug(cls, v, info):
        """Disable debug in production."""
        if info.data.get("environment") == Environment.PRODUCTION:
            return False
        return v

    @property
    def allowed_origins_list(self) -> list[str]:
        """Get allowed origins as list."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_hours * 3600

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
