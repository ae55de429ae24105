"""DDL for the demo schema.

Issued as raw statements instead of ``Base.metadata.create_all`` so that the
``cpu_data`` table can be turned into a hypertable right after creation.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from infrastructure.persistence import timescale


MACHINES_TABLE = "machines"
CPU_DATA_TABLE = "cpu_data"

HYPERTABLE_TIME_COLUMN = "time"
HYPERTABLE_PARTITION_COLUMN = "machine_id"
HYPERTABLE_PARTITIONS = 2

DROP_STATEMENTS = (
    "DROP TABLE IF EXISTS cpu_data CASCADE",
    "DROP TABLE IF EXISTS machines CASCADE",
)

CREATE_STATEMENTS = (
    """
    CREATE TABLE machines (
        id SERIAL PRIMARY KEY,
        name TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE cpu_data (
        time TIMESTAMPTZ NOT NULL,
        machine_id INTEGER REFERENCES machines (id),
        value DOUBLE PRECISION
    )
    """,
)


async def recreate_schema(conn: AsyncConnection, chunk_time_interval: str) -> None:
    """Drop and recreate ``machines`` and the ``cpu_data`` hypertable.

    The drops cascade to dependent views and policies, so the step can be repeated.

    Args:
        conn: Open connection
        chunk_time_interval: Chunk interval for ``cpu_data``
    """
    for statement in DROP_STATEMENTS:
        await conn.execute(text(statement))

    for statement in CREATE_STATEMENTS:
        await conn.execute(text(statement))

    await timescale.create_hypertable(
        conn,
        CPU_DATA_TABLE,
        HYPERTABLE_TIME_COLUMN,
        HYPERTABLE_PARTITION_COLUMN,
        HYPERTABLE_PARTITIONS,
    )
    await timescale.set_chunk_time_interval(conn, CPU_DATA_TABLE, chunk_time_interval)
