"""TimescaleDB demo entry point."""

from __future__ import annotations

import asyncio
import sys

from loguru import logger

from application.demo import DemoReport, DemoRunner
from core.config import Settings, get_settings
from core.database import DatabaseError, check_database_health, connect, create_engine
from core.logging import configure_logging


async def run_demo(settings: Settings) -> DemoReport:
    """Open the demo connection and run every step on it.

    Args:
        settings: Application settings

    Returns:
        Report of the completed run

    Raises:
        DatabaseError: If the connection cannot be opened or a step fails
    """
    engine = create_engine(settings.database)
    try:
        async with connect(engine) as conn:
            print("Connection successful!!!")

            health = await check_database_health(conn)
            logger.info(
                "Connected to database",
                host=settings.database.host,
                database=settings.database.database,
                timescaledb_version=health.get("timescaledb_version"),
            )

            runner = DemoRunner(conn, settings.demo)
            return await runner.run()
    finally:
        await engine.dispose()


def main() -> int:
    """Run the demo and map the outcome to a process exit status.

    Returns:
        0 on success, 1 when the demo failed
    """
    settings = get_settings()

    configure_logging(
        level=settings.observability.log_level,
        structured=settings.observability.log_format == "json",
        log_file=settings.observability.log_file_path,
        environment=settings.environment,
    )

    try:
        report = asyncio.run(run_demo(settings))
    except DatabaseError as e:
        logger.opt(exception=True).error("Demo failed")
        print(str(e), file=sys.stderr)
        return 1

    logger.info("Demo finished", steps=len(report.steps_completed))
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
