"""
Application configuration.

Centralized configuration management with environment variables.
Every field can be overridden with a ``STEPCALC_``-prefixed variable.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_prefix="STEPCALC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "stepcalc"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # json or text
    LOG_FILE: Optional[str] = None

    # Evaluation defaults
    DEFAULT_DIRECTION: str = "left_to_right"
    DEFAULT_MODE: str = "normal"
    DEFAULT_PRECISION: int = 10
    DEFAULT_SIGNIFICANT_DIGITS: bool = False

    # Resource limits
    MAX_SUMMATION_TERMS: int = 1_000_000
    MAX_DERIVATIVE_ORDER: int = 10

    # Numerical differentiation
    DERIVATIVE_STEP: float = 1e-6
    TAYLOR_STEP: float = 1e-2

    # Return 0 with a logged warning instead of raising DomainError
    DEGRADE_DOMAIN_ERRORS: bool = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
