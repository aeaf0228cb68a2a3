"""Configuration and environment variable validation for Spin League."""

import os
import logging
from typing import List

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///tournament.db"

class Config:
    """Configuration class that loads and validates environment variables."""

    def __init__(self):
        self.load_config()

    def load_config(self):
        """Load and validate all environment variables."""
        # Environment detection
        self.environment = os.getenv("ENVIRONMENT", "development").lower()
        self.is_production = self.environment == "production"
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        # Database configuration - SQLite fallback outside production
        self.database_url = os.getenv("DATABASE_URL")
        self.db_echo = os.getenv("DB_ECHO", "false").lower() == "true"
        self.db_pool_size = int(os.getenv("DB_POOL_SIZE", "10"))

        # API server
        self.api_host = os.getenv("API_HOST", "0.0.0.0")
        self.api_port = int(os.getenv("API_PORT", "8081"))
        self.allowed_origins = self._parse_origins(os.getenv("ALLOWED_ORIGINS"))

        # League rules
        self.award_bracket_wins = os.getenv("LEAGUE_AWARD_BRACKET_WINS", "false").lower() == "true"

        # Validate configuration based on environment
        self._validate_config()

    def _parse_origins(self, value) -> List[str]:
        if not value:
            return [
                "http://localhost:3000",
                "http://127.0.0.1:3000",
                "http://localhost:5173",
            ]
        return [origin.strip() for origin in value.split(",") if origin.strip()]

    def _validate_config(self):
        """Validate configuration and log warnings for potential issues."""
        if self.is_production:
            if not self.database_url:
                raise ValueError("DATABASE_URL must be set in production")

            if self.database_url.startswith("sqlite"):
                logger.warning("PRODUCTION WARNING: SQLite database configured in production")

            if "*" in self.allowed_origins:
                logger.warning("PRODUCTION WARNING: ALLOWED_ORIGINS allows every origin")

        else:
            logger.info("Running in development mode")
            if not self.database_url:
                logger.warning(f"DATABASE_URL not set, using SQLite at {DEFAULT_DATABASE_URL}")

        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            logger.warning(f"Unknown LOG_LEVEL {self.log_level!r}, falling back to INFO")
            self.log_level = "INFO"

    def get_database_url(self) -> str:
        """Database URL with the development fallback applied."""
        return self.database_url or DEFAULT_DATABASE_URL

# Global config instance
config = Config()
