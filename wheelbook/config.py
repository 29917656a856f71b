"""Configuration management for the Wheelbook server.

This module handles configuration loading from environment variables,
providing sensible defaults for development and production.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application configuration settings.

    Attributes:
        app_name: Application name
        version: Application version
        debug: Debug mode flag
        sql_echo: Log SQL statements emitted by the engine
        database_path: SQLite database file used when no URI is given
        database_uri: Full SQLAlchemy URL, overrides database_path
        cors_origins: List of allowed CORS origins
        host: Server host address
        port: Server port number
        free_trade_limit: Lifetime trade cap for FREE tier users
        batch_expire_max: Maximum trade IDs accepted by batch expire
        batch_assign_max: Maximum trade IDs accepted by batch assign
    """

    model_config = SettingsConfigDict(env_prefix="WHEELBOOK_", case_sensitive=False)

    app_name: str = "Wheelbook API"
    version: str = "1.0.0"
    debug: bool = False
    sql_echo: bool = False

    # Database configuration
    database_path: str = "~/.wheelbook/wheelbook.db"
    database_uri: Optional[str] = None

    # CORS configuration - allow local development origins
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000

    # Business limits
    free_trade_limit: int = 20
    batch_expire_max: int = 100
    batch_assign_max: int = 50

    @property
    def database_url(self) -> str:
        """Get SQLAlchemy database URL.

        Returns:
            Database URL string for SQLAlchemy
        """
        if self.database_uri:
            return self.database_uri
        expanded_path = os.path.expanduser(self.database_path)
        return f"sqlite:///{expanded_path}"

    def get_database_path(self) -> Path:
        """Get expanded database path as Path object.

        Returns:
            Resolved database file path
        """
        return Path(os.path.expanduser(self.database_path))


# Global settings instance
settings = Settings()
