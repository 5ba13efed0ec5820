"""
Configuration settings for the storefront core.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


class Settings:
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Backend API
    API_BASE_URL: str = os.getenv("API_BASE_URL", "https://jscapi.jomsmart.com/api")
    API_TIMEOUT_SECONDS: float = float(os.getenv("API_TIMEOUT_SECONDS", "10"))
    DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "en")

    # Page sizes per list family
    DEFAULT_PAGE_LIMIT: int = int(os.getenv("DEFAULT_PAGE_LIMIT", "12"))
    CLAIMS_PAGE_LIMIT: int = int(os.getenv("CLAIMS_PAGE_LIMIT", "10"))
    NOTIFICATIONS_PAGE_LIMIT: int = int(os.getenv("NOTIFICATIONS_PAGE_LIMIT", "20"))

    # Background sweeps
    NOTIFICATION_POLL_INTERVAL_SECONDS: float = float(
        os.getenv("NOTIFICATION_POLL_INTERVAL_SECONDS", "30")
    )
    AUTO_REFRESH_INTERVAL_SECONDS: float = float(
        os.getenv("AUTO_REFRESH_INTERVAL_SECONDS", "300")
    )
    AUTO_REFRESH_PREFIXES: tuple[str, ...] = _split_csv(
        os.getenv("AUTO_REFRESH_PREFIXES", "home-,category-")
    )

    # Redis-backed notification state
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    NOTIFICATION_STATE_KEY_PREFIX: str = os.getenv(
        "NOTIFICATION_STATE_KEY_PREFIX",
        "storefront:notifications:",
    )
    NOTIFICATION_STATE_TTL_SECONDS: int = int(
        os.getenv("NOTIFICATION_STATE_TTL_SECONDS", "86400")
    )

    @property
    def is_production(self) -> bool:
        """
        Check if running in production environment.
        """
        return self.ENVIRONMENT.lower() == "production"

    @property
    def poll_enabled(self) -> bool:
        """Return True when the periodic unread-count poll should run."""
        return self.NOTIFICATION_POLL_INTERVAL_SECONDS > 0

    def __init__(self):
        self.env = os.getenv("ENV", "dev")
        self.debug = os.getenv("DEBUG", "false").lower() == "true"
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        logging.basicConfig(level=self.log_level)
        self.logger = logging.getLogger(__name__)

        self.logger.debug(
            f"Config initialized with env={self.env}, debug={self.debug}, "
            f"log_level={self.log_level}"
        )


# Create a global settings instance for import
settings = Settings()
