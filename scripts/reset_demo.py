"""Drop the demo view and tables so the demo can be run again."""

import asyncio

from sqlalchemy import text

from application.queries import CPU_AVG_DAILY_VIEW
from core.config import get_settings
from core.database import connect, create_engine
from core.logging import configure_logging, get_logger
from infrastructure.persistence.schema import DROP_STATEMENTS


logger = get_logger("reset_demo")


async def reset_demo() -> None:
    """Drop the continuous aggregate and both demo tables."""
    settings = get_settings()
    configure_logging(
        level=settings.observability.log_level, environment=settings.environment
    )
    engine = create_engine(settings.database)

    try:
        async with connect(engine) as conn:
            await conn.execute(text(f"DROP MATERIALIZED VIEW IF EXISTS {CPU_AVG_DAILY_VIEW}"))
            for statement in DROP_STATEMENTS:
                await conn.execute(text(statement))
                logger.debug(statement)
        print("✅ Demo objects dropped successfully")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(reset_demo())
