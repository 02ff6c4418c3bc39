"""Configuration management for the Progress Engine."""

from typing import List
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
import json


class Settings(BaseSettings):
    """Application settings with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    # Application
    APP_NAME: str = "Progress Engine"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")
    SERVICE_NAME: str = "progress-engine"
    SERVICE_PORT: int = 8004

    # Storage
    DATABASE_URL: str = "sqlite:///./progress.db"
    STORAGE_KEY_PREFIX: str = "progress"
    MAX_CACHED_SESSIONS: int = Field(default=1024, ge=1)

    # JWT
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 60

    # Experience rewards
    XP_CONCEPT_COMPLETED: int = 50
    XP_CONCEPT_PER_MINUTE: int = 2
    XP_PROJECT_STARTED: int = 25
    XP_PROJECT_COMPLETED_BEGINNER: int = 100
    XP_PROJECT_COMPLETED_INTERMEDIATE: int = 200
    XP_PROJECT_COMPLETED_ADVANCED: int = 300
    XP_PROJECT_PER_MINUTE: int = 3

    # Achievement rewards by rarity
    XP_RARITY_COMMON: int = 10
    XP_RARITY_UNCOMMON: int = 15
    XP_RARITY_RARE: int = 25
    XP_RARITY_EPIC: int = 50
    XP_RARITY_LEGENDARY: int = 100

    # Leveling
    LEVEL_THRESHOLDS: List[int] = Field(
        default_factory=lambda: [0, 100, 250, 500, 1000, 1750, 2750, 4000, 5500, 7500, 10000]
    )

    @field_validator("LEVEL_THRESHOLDS", mode="before")
    def parse_level_thresholds(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [int(part.strip()) for part in v.split(",") if part.strip()]
        return v

    @field_validator("LEVEL_THRESHOLDS")
    def check_level_thresholds(cls, v):
        if not v or v[0] != 0:
            raise ValueError("LEVEL_THRESHOLDS must start at 0")
        if any(later <= earlier for earlier, later in zip(v, v[1:])):
            raise ValueError("LEVEL_THRESHOLDS must be strictly ascending")
        return v

    # Preferences
    DAILY_GOAL_MINUTES: int = 30

    # Logging
    LOG_LEVEL: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    LOG_FORMAT: str = Field(default="json", pattern="^(json|plain)$")

    # CORS
    CORS_ORIGINS: List[str] = Field(default_factory=list)

    @field_validator("CORS_ORIGINS", mode="before")
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",")]
        return v

    # Monitoring
    ENABLE_METRICS: bool = True

    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == "production"

    def uses_memory_storage(self) -> bool:
        """Check if learner state is kept in process memory only."""
        return self.DATABASE_URL.startswith("memory://")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
