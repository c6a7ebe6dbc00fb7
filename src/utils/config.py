"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Apollo.io (Optional - firmographic enrichment)
    APOLLO_API_KEY: Optional[str] = None

    # DataForSEO (Optional - SEO metrics)
    DATAFORSEO_LOGIN: Optional[str] = None
    DATAFORSEO_PASSWORD: Optional[str] = None

    # Wappalyzer (Optional - technology detection)
    WAPPALYZER_API_KEY: Optional[str] = None

    # Storage
    DATABASE_URL: Optional[str] = None

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Default SEO settings
    DEFAULT_LOCATION_CODE: int = 2840  # United States
    DEFAULT_LANGUAGE_CODE: str = "en"
    COMPETITORS_LIMIT: int = 10

    # Cache
    CACHE_TTL_HOURS: int = 24

    # Timeouts (seconds)
    API_TIMEOUT: int = 60
    PROVIDER_TIMEOUT: float = 15.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
