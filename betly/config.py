"""
Configuration management for the Betly ticket and credits client.

This module handles all configuration loading from environment variables
and provides type-safe access to configuration values throughout the client.
"""

import os
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv
import pytz

# Load environment variables from .env file if it exists
load_dotenv()


class Config:
    """
    Centralized configuration class for the Betly client.

    All configuration values are loaded from environment variables with
    sensible defaults. The auth token is never read from the environment;
    it lives in the key-value store after login.
    """

    # Remote API
    API_BASE_URL: str = os.getenv("BETLY_API_BASE_URL", "https://api.betly.fr")
    API_TIMEOUT: int = int(os.getenv("API_TIMEOUT", "30"))

    # Sent as X-App-Version / X-Build-Number on every request
    APP_VERSION: str = os.getenv("APP_VERSION", "1.2.0")
    BUILD_NUMBER: str = os.getenv("BUILD_NUMBER", "26")

    # Device-local key-value store
    STORE_PATH: Path = Path(os.getenv("STORE_PATH", "data/betly_store.db"))

    # Ticket draft
    DEFAULT_STAKE: float = float(os.getenv("DEFAULT_STAKE", "10"))
    MIN_STAKE: float = float(os.getenv("MIN_STAKE", "1"))

    # Background refresh
    REFRESH_INTERVAL_MINUTES: int = int(os.getenv("REFRESH_INTERVAL_MINUTES", "15"))
    REFRESH_TIMEZONE: str = os.getenv("REFRESH_TIMEZONE", "UTC")

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Optional[Path] = Path(os.getenv("LOG_FILE")) if os.getenv("LOG_FILE") else None

    @classmethod
    def validate(cls) -> tuple[bool, list[str]]:
        """
        Validate configuration values.

        Returns:
            tuple: (is_valid, list_of_errors)
        """
        errors: list[str] = []

        if not cls.API_BASE_URL.startswith(("http://", "https://")):
            errors.append("BETLY_API_BASE_URL must start with http:// or https://")

        if cls.API_TIMEOUT < 1:
            errors.append("API_TIMEOUT must be at least 1 second")

        if cls.MIN_STAKE < 1:
            errors.append("MIN_STAKE must be at least 1")

        if cls.DEFAULT_STAKE < cls.MIN_STAKE:
            errors.append("DEFAULT_STAKE must be >= MIN_STAKE")

        if cls.REFRESH_INTERVAL_MINUTES < 1:
            errors.append("REFRESH_INTERVAL_MINUTES must be at least 1")

        if cls.REFRESH_TIMEZONE not in pytz.all_timezones_set:
            errors.append(f"REFRESH_TIMEZONE is not a known timezone: {cls.REFRESH_TIMEZONE}")

        return (len(errors) == 0, errors)

    @classmethod
    def ensure_directories(cls) -> None:
        """Create the store and log directories if they don't exist."""
        cls.STORE_PATH.parent.mkdir(parents=True, exist_ok=True)
        if cls.LOG_FILE:
            cls.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
