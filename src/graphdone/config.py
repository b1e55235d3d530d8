"""
graphdone Configuration

This module manages client configuration via environment variables and the
~/.graphdone/.env file.

Configuration is loaded from:
1. Environment variables (prefixed with GRAPHDONE_)
2. ~/.graphdone/.env file

Key settings:
- GRAPHDONE_API_URL: GraphQL endpoint of the graph service
- GRAPHDONE_API_TOKEN: Bearer token for the graph service
- GRAPHDONE_DATABASE_URL: Local SQLite database for session persistence
- GRAPHDONE_USER_ID / GRAPHDONE_TEAM_ID: Actor identity used by the CLI
"""

import logging
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".graphdone"


class Settings(BaseSettings):
    """graphdone configuration settings."""

    app_name: str = "GraphDone"

    # Remote graph service
    api_url: str = "http://localhost:4127/graphql"
    api_token: str | None = None
    # None disables the timeout; a hung call only delays that one operation
    request_timeout: Optional[float] = None

    # Local session persistence
    database_url: str = f"sqlite:///{CONFIG_DIR}/session.db"

    # Actor identity (normally supplied by the auth session)
    user_id: str | None = None
    team_id: str = "default-team"

    # Seed the built-in dataset when the first list-load fails
    demo_fallback: bool = True

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="GRAPHDONE_",
        env_file=CONFIG_DIR / ".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = str(value).strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("request_timeout", mode="before")
    @classmethod
    def _empty_timeout(cls, value):
        if value in ("", "none", "None"):
            return None
        return value

    def get_db_path(self) -> Path:
        """Get the SQLite database file path."""
        if self.database_url.startswith("sqlite:///"):
            return Path(self.database_url[len("sqlite:///"):]).expanduser()
        return CONFIG_DIR / "session.db"

    @property
    def is_server_configured(self) -> bool:
        """Check if an API token is configured."""
        return bool(self.api_token)


def get_settings() -> Settings:
    """Build a fresh Settings instance from the current environment."""
    return Settings()


settings = get_settings()
