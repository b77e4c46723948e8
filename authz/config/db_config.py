"""
Database settings from the environment.

Values set here (``AUTHZ_DB_*`` variables or a ``.env`` file) override the
``database`` block of the YAML configuration, so deployments can inject
credentials without editing config files.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from authz.config import DatabaseConfig
from authz.config.logging import get_logger

logger = get_logger(__name__)


class DatabaseSettings(BaseSettings):
    """Database overrides read from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="AUTHZ_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    url: Optional[str] = Field(default=None, description="SQLAlchemy database URL")
    pool_size: Optional[int] = Field(default=None, description="Connection pool size")
    max_overflow: Optional[int] = Field(default=None, description="Connections allowed above pool_size")
    pool_timeout: Optional[int] = Field(default=None, description="Seconds to wait for a pooled connection")
    echo: Optional[bool] = Field(default=None, description="Echo SQL statements")

    def apply_to(self, config: DatabaseConfig) -> DatabaseConfig:
        """Return ``config`` with every explicitly set value overridden."""
        overrides = self.model_dump(exclude_none=True)
        if not overrides:
            return config
        return config.model_copy(update=overrides)


def get_database_settings() -> DatabaseSettings:
    """Read database settings from the current environment."""
    return DatabaseSettings()


def validate_database_config(config: DatabaseConfig, workers: int = 1) -> List[str]:
    """
    Validate database configuration.

    Args:
        config: Effective database configuration
        workers: Number of server worker processes sharing the database

    Returns:
        List of issues found; empty when the configuration looks sound
    """
    issues = []

    if config.url.startswith("sqlite") and workers > 1:
        issues.append("SQLite does not support concurrent writers from several worker processes")

    if not config.url.startswith("sqlite"):
        if config.pool_size < 5:
            issues.append("Pool size below 5 may starve concurrent authorization checks")
        if config.pool_timeout <= 0:
            issues.append("Pool timeout must be positive")

    if config.echo:
        issues.append("SQL echo is enabled (verbose, may log sensitive data)")

    for issue in issues:
        logger.warning(f"Database configuration: {issue}")

    return issues
