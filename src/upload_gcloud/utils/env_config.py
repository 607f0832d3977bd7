"""
Environment-based configuration for the Google Cloud Storage upload backend.

Settings are read from environment variables. Variables that are not
already set may be seeded from a ``.env`` file in the working directory
when the settings are first loaded.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def load_env_file() -> None:
    """Seed unset environment variables from a .env file in the working directory."""
    env_file = Path.cwd() / ".env"
    if env_file.exists():
        load_dotenv(env_file, override=False)
        logger.info(f"Loaded environment variables from: {env_file}")


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(key, "").lower()
    return value in ("true", "1", "yes", "on") if value else default


@dataclass
class AppSettings:
    """Application settings from environment variables."""

    # Environment
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    app_root: str = field(default_factory=lambda: os.getenv("APP_ROOT", os.getcwd()))

    # Storage Configuration
    storage_name: str = field(default_factory=lambda: os.getenv("STORAGE_NAME", "gcloud"))
    storage_bucket_name: Optional[str] = field(default_factory=lambda: os.getenv("STORAGE_BUCKET_NAME"))
    storage_credentials: Optional[str] = field(default_factory=lambda: os.getenv("STORAGE_CREDENTIALS"))
    storage_logger: str = field(default_factory=lambda: os.getenv("STORAGE_LOGGER", "upload-gcloud"))

    # Logging Configuration
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    log_json_format: bool = field(default_factory=lambda: get_env_bool("LOG_JSON_FORMAT", False))

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.environment == "production":
            if not self.storage_bucket_name:
                logger.warning("Storage bucket not provided for production environment")
            if not self.storage_credentials and not os.getenv("GOOGLE_APPLICATION_CREDENTIALS"):
                logger.warning("Storage credentials not provided for production environment")

    def get_storage_config(self) -> dict:
        """Get storage configuration as a dictionary."""
        return {
            "name": self.storage_name,
            "bucket": self.storage_bucket_name,
            "credentials": self.storage_credentials,
            "root_dir": self.app_root,
            "logger": self.storage_logger,
        }


# Global settings instance
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get the global application settings instance."""
    global _settings
    if _settings is None:
        load_env_file()
        _settings = AppSettings()
        logger.info(f"Loaded settings for environment: {_settings.environment}")
    return _settings


def reload_settings() -> AppSettings:
    """Reload the global application settings."""
    global _settings
    load_env_file()
    _settings = AppSettings()
    logger.info(f"Reloaded settings for environment: {_settings.environment}")
    return _settings
