"""Centralized configuration management for the TimescaleDB demo.

This module provides Pydantic-based configuration with environment variable support
and validation for the database connection, the demo workflow and observability.
"""

from __future__ import annotations

import re
from functools import cached_property
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


_INTERVAL_PATTERN = re.compile(r"^\s*\d+\s+[A-Za-z]+\s*$")


class DatabaseSettings(BaseSettings):
    """PostgreSQL/TimescaleDB connection configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TSDEMO_DB_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, ge=1, le=65535, description="Database port")
    user: str = Field(default="postgres", description="Database user")
    password: str = Field(default="password", description="Database password")
    database: str = Field(default="example", description="Database name")
    echo: bool = Field(default=False, description="Echo SQL statements")

    @cached_property
    def async_url(self) -> URL:
        """Generate async SQLAlchemy connection URL.

        Credentials are escaped, so passwords may contain URL delimiters.

        Returns:
            PostgreSQL async connection URL
        """
        return URL.create(
            drivername="postgresql+asyncpg",
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )


class DataNodeSettings(BaseModel):
    """A remote data node registered with the access node."""

    name: str = Field(min_length=1, description="Data node name")
    host: str = Field(min_length=1, description="Data node host")


def _default_data_nodes() -> list[DataNodeSettings]:
    return [
        DataNodeSettings(name="datanode_1", host="timescaledb2"),
        DataNodeSettings(name="datanode_2", host="timescaledb3"),
    ]


class DemoSettings(BaseSettings):
    """Workflow parameters for the demo steps."""

    model_config = SettingsConfigDict(
        env_prefix="TSDEMO_DEMO_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    machine_count: int = Field(default=10, ge=1, le=10000, description="Synthetic machines")
    series_span: str = Field(default="1 YEARS", description="Generated series length")
    series_step: str = Field(default="1 minutes", description="Generated series resolution")
    chunk_time_interval: str = Field(default="1 day", description="Hypertable chunk interval")
    compress_after: str = Field(default="2 weeks", description="Compression age threshold")
    retain_for: str = Field(default="1 MONTHS", description="Retention age threshold")
    query_limit: int = Field(default=10, ge=1, le=1000, description="Rows per report query")
    create_extension: bool = Field(
        default=True, description="Create the timescaledb extension before the schema"
    )
    data_nodes: list[DataNodeSettings] = Field(
        default_factory=_default_data_nodes,
        description="Data nodes to attach; empty skips multi-node provisioning",
    )
    data_node_password: str = Field(default="password", description="Data node password")

    @field_validator(
        "series_span", "series_step", "chunk_time_interval", "compress_after", "retain_for"
    )
    @classmethod
    def validate_interval(cls, v: str) -> str:
        """Validate a PostgreSQL interval literal.

        Args:
            v: Interval value such as ``1 day``

        Returns:
            Validated interval with surrounding whitespace removed

        Raises:
            ValueError: If the value is not ``<number> <unit>``
        """
        if not _INTERVAL_PATTERN.match(v):
            raise ValueError(f"Interval must look like '<number> <unit>', got {v!r}")
        return v.strip()


class ObservabilitySettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="TSDEMO_OBSERVABILITY_", case_sensitive=False)

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format (json or text)")
    log_file_path: Path | None = Field(default=None, description="Log file path")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level.

        Args:
            v: Log level value

        Returns:
            Validated log level

        Raises:
            ValueError: If log level is invalid
        """
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = {"json", "text"}
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of {valid_formats}")
        return v.lower()


class Settings(BaseSettings):
    """Main demo configuration combining all subsystems."""

    model_config = SettingsConfigDict(
        env_prefix="TSDEMO_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field(
        default="development",
        description="Application environment (development, testing, production)",
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    demo: DemoSettings = Field(default_factory=DemoSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value.

        Args:
            v: Environment value

        Returns:
            Validated environment

        Raises:
            ValueError: If environment is invalid
        """
        valid_envs = {"development", "testing", "production"}
        if v.lower() not in valid_envs:
            raise ValueError(f"Environment must be one of {valid_envs}")
        return v.lower()


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Returns:
        Global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def configure_settings(settings: Settings) -> None:
    """Configure the global settings instance.

    Args:
        settings: Settings instance to use globally
    """
    global _settings
    _settings = settings


def reload_settings() -> Settings:
    """Reload settings from environment variables.

    Returns:
        Reloaded Settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
