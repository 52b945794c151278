"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the IdP Configs API happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. database_url -> DATABASE_URL). Type coercion and validation are
      built in.

  @model_validator(mode="after"): Cross-field validation after all fields are
      resolved. Dev mode falls back to a local SQLite file; production mode
      refuses to start without an explicit DATABASE_URL.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or realms/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("idpconfigs.config")

_DEV_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'idpconfigs.db'}"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file, as long as DEBUG=true or
    DATABASE_URL is set.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"
    # Empty string is the sentinel for "not configured". The model_validator
    # below either substitutes the dev SQLite file or raises.
    database_url: str = ""

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    # Header carrying the base64 identity document set by the gateway.
    identity_header: str = "x-rh-identity"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    allowed_hosts: list[str] = ["*"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    read_rate_limit: str = "120/minute"
    write_rate_limit: str = "30/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(sorted(_LOG_LEVELS))}")
        return level

    @model_validator(mode="after")
    def validate_database_url(self) -> "Settings":
        """Resolve the database URL.

        Dev mode (DEBUG=true): fall back to a SQLite file next to the project
            with a warning. Data survives restarts but is local to the host.

        Production mode (DEBUG=false or not set): refuse to start without
            DATABASE_URL. Silently writing records to a local file in
            production would lose them on the next deploy.
        """
        if not self.database_url:
            if self.debug:
                self.database_url = _DEV_DB_URL
                logger.warning("WARNING: DATABASE_URL not set. Using local SQLite file %s", _DEV_DB_URL)
            else:
                raise ValueError(
                    "DATABASE_URL is required in production mode. "
                    "Set DATABASE_URL in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
