"""Environment driven settings."""

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from .errors import LegacySourceUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_VERSION = "4.6"
SUPPORTED_SCHEMA_VERSIONS = ("4.5", "4.6")
DEFAULT_CONNECT_TIMEOUT = 10


class Settings(BaseSettings):
    """Settings read from ``DATACITE_*`` and ``LEGACY_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_ignore_empty=True,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    schema_version: str = Field(default=DEFAULT_SCHEMA_VERSION, alias="DATACITE_SCHEMA_VERSION")
    schema_dir: Path | None = Field(default=None, alias="DATACITE_SCHEMA_DIR")
    legacy_database_url: str | None = Field(default=None, alias="LEGACY_DATABASE_URL")
    legacy_connect_timeout: int = Field(
        default=DEFAULT_CONNECT_TIMEOUT, alias="LEGACY_CONNECT_TIMEOUT"
    )

    @field_validator("legacy_connect_timeout", mode="before")
    @classmethod
    def fallback_connect_timeout(cls, v):
        """A non-integer timeout falls back to the default instead of failing start-up."""
        if isinstance(v, str):
            try:
                return int(v.strip())
            except ValueError:
                logger.warning(
                    f"Ignoring non-integer LEGACY_CONNECT_TIMEOUT={v!r}, "
                    f"using {DEFAULT_CONNECT_TIMEOUT}s"
                )
                return DEFAULT_CONNECT_TIMEOUT
        return v


def create_legacy_engine(settings: Settings) -> Engine:
    """Build the SQLAlchemy engine for the read-only legacy database."""
    if not settings.legacy_database_url:
        raise LegacySourceUnavailableError("LEGACY_DATABASE_URL is not configured")

    url = settings.legacy_database_url
    # sqlite3 names its connect timeout differently from the server drivers
    if url.startswith("sqlite"):
        connect_args = {"timeout": settings.legacy_connect_timeout}
    else:
        connect_args = {"connect_timeout": settings.legacy_connect_timeout}

    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)
