"""Database engine and connection management for the TimescaleDB demo.

The demo holds exactly one connection for its whole run. The engine is created
without a pool and in autocommit mode, because several TimescaleDB commands
(``add_data_node``, continuous aggregate creation) refuse to run inside a
transaction block.
"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncGenerator
from typing import Any

from loguru import logger
from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from core.config import DatabaseSettings, get_settings


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when database connection fails."""

    pass


def create_engine(
    database_settings: DatabaseSettings | None = None,
    **kwargs: Any,
) -> AsyncEngine:
    """Create async SQLAlchemy engine with configuration.

    Args:
        database_settings: Database settings. Uses global settings if None.
        **kwargs: Additional engine arguments (override settings)

    Returns:
        Configured AsyncEngine instance

    Raises:
        DatabaseConnectionError: If the engine cannot be created
    """
    if database_settings is None:
        database_settings = get_settings().database

    engine_args: dict[str, Any] = {
        "url": database_settings.async_url,
        "echo": database_settings.echo,
        "poolclass": NullPool,
        "isolation_level": "AUTOCOMMIT",
    }
    engine_args.update(kwargs)

    try:
        engine = create_async_engine(**engine_args)
    except Exception as e:
        raise DatabaseConnectionError(f"Failed to create database engine: {e}") from e

    _register_engine_events(engine)

    return engine


@contextlib.asynccontextmanager
async def connect(engine: AsyncEngine) -> AsyncGenerator[AsyncConnection, None]:
    """Open the single demo connection.

    The connection is closed on every exit path, including when the body raises.

    Args:
        engine: AsyncEngine instance

    Yields:
        AsyncConnection instance

    Raises:
        DatabaseConnectionError: If the connection cannot be opened
    """
    try:
        conn = await engine.connect()
    except (SQLAlchemyError, OSError) as e:
        raise DatabaseConnectionError(f"Failed to connect to database: {e}") from e

    try:
        yield conn
    finally:
        await conn.close()


async def check_database_health(conn: AsyncConnection) -> dict[str, Any]:
    """Check database connectivity and report server versions.

    Args:
        conn: Open connection

    Returns:
        Health check results with version info
    """
    try:
        result = await conn.execute(text("SELECT 1 as health_check"))
        health_check = result.scalar()

        result = await conn.execute(text("SELECT version()"))
        pg_version = result.scalar()

        result = await conn.execute(
            text("SELECT extversion FROM pg_extension WHERE extname='timescaledb'")
        )
        timescale_version = result.scalar()

        return {
            "status": "healthy" if health_check == 1 else "unhealthy",
            "postgresql_version": pg_version,
            "timescaledb_version": timescale_version,
        }

    except SQLAlchemyError as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "error_type": type(e).__name__,
        }


def _register_engine_events(engine: AsyncEngine) -> None:
    """Register engine event handlers.

    Args:
        engine: AsyncEngine to register events on
    """

    @event.listens_for(engine.sync_engine, "connect")
    def receive_connect(dbapi_conn: Any, connection_record: Any) -> None:
        """Pin the session time zone so printed buckets are in UTC."""
        cursor = dbapi_conn.cursor()
        cursor.execute("SET TIME ZONE 'UTC'")
        cursor.close()

    @event.listens_for(engine.sync_engine, "close")
    def receive_close(dbapi_conn: Any, connection_record: Any) -> None:
        """Handle connection close events."""
        logger.debug("Database connection closed")
