"""Runtime configuration — env-driven via pydantic-settings.

Reads from a .env file and CONFIGVAULT_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class VaultSettings(BaseSettings):
    """Store configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export CONFIGVAULT_DATABASE_PATH=/data/configvault.db
        export CONFIGVAULT_DELETE_PASSWORD=...
        export CONFIGVAULT_UPDATE_PASSWORD=...

    Or via .env file::

        CONFIGVAULT_ENVIRONMENT=production
        CONFIGVAULT_LOG_LEVEL=WARNING
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CONFIGVAULT_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Storage
    database_path: Path = Path("storage/configvault.db")
    legacy_database_path: Path = Path("storage/database.json")

    # Shared secrets (empty = operation disabled, fail-closed)
    update_password: str = ""
    delete_password: str = ""

    # Update tokens
    token_ttl_seconds: float = 600.0
    sweep_interval_seconds: float = 60.0

    # Query limits
    default_page_size: int = 10
    max_page_size: int = 50
    search_limit: int = 50
    recent_uploads: int = 5

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton — import as `from configvault.config import settings`
settings = VaultSettings()
