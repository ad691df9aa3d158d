"""Configuration management for the Dealer Studio application.

This module handles all configuration aspects of the application including:
- Environment variable loading and validation using Pydantic
- Provider credentials for the image-generation backends
- Database and ephemeral cache connection settings
- Environment-specific configurations

Settings are read once per process through ``get_settings()``; tests build
their own ``Settings`` instances and pass them in explicitly.
"""

from functools import lru_cache
from typing import List, Optional
from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentType(str, Enum):
    """Environment types for configuration management"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Main application settings with environment-specific configurations"""

    # Basic application settings
    APP_NAME: str = "Dealer Studio"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: EnvironmentType = EnvironmentType.DEVELOPMENT

    # CORS
    ALLOWED_ORIGINS: List[str] = ["*"]

    # Database settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./dealer_studio.db"
    SQL_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Ephemeral store for draft dealers
    REDIS_URL: Optional[str] = None
    DRAFT_DEALER_PREFIX: str = "new-"
    DRAFT_TTL_SECONDS: int = 86400

    # Image providers
    OPENAI_API_KEY: Optional[str] = None
    GETIMG_API_KEY: Optional[str] = None
    OPENAI_IMAGES_URL: str = "https://api.openai.com/v1/images/generations"
    GETIMG_TEXT_TO_IMAGE_URL: str = "https://api.getimg.ai/v1/generation/text-to-image"
    PROVIDER_TIMEOUT_SECONDS: float = 120.0

    # API settings
    API_V1_PREFIX: str = "/api/v1"

    @property
    def PROD(self) -> bool:
        """Check if environment is production"""
        return self.ENVIRONMENT == EnvironmentType.PRODUCTION

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings"""
    return Settings()
