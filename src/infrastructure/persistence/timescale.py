"""TimescaleDB-specific utilities.

Thin wrappers around the TimescaleDB SQL API: multi-node provisioning, hypertables,
continuous aggregates, compression and retention. Relation names are inlined after
validation; interval values are bound parameters.
Tested via unit tests with mocked connections and integration tests with real
PostgreSQL/TimescaleDB.
"""

from __future__ import annotations

import re
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection


_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _identifier(name: str) -> str:
    """Validate a relation or column name before it is inlined into SQL.

    Raises:
        ValueError: If the name is not a plain SQL identifier
    """
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


async def create_extension(conn: AsyncConnection) -> None:
    """Create the timescaledb extension if it is missing."""
    await conn.execute(text("CREATE EXTENSION IF NOT EXISTS timescaledb CASCADE"))


async def add_data_node(conn: AsyncConnection, node_name: str, host: str, password: str) -> None:
    """Attach a data node to the access node, tolerating an existing one.

    Args:
        conn: Open connection to the access node
        node_name: Data node name
        host: Data node host
        password: Password used by the access node to reach the data node
    """
    await conn.execute(
        text(
            """
            SELECT add_data_node(:node_name, :host, password => :password, if_not_exists => TRUE)
            """
        ),
        {"node_name": node_name, "host": host, "password": password},
    )


async def create_hypertable(
    conn: AsyncConnection,
    relation: str,
    time_column: str,
    partitioning_column: str,
    number_partitions: int,
) -> None:
    """Convert a table into a hypertable partitioned by time and space.

    Args:
        conn: Open connection
        relation: Table to convert
        time_column: Time partitioning column
        partitioning_column: Space partitioning column
        number_partitions: Number of space partitions
    """
    await conn.execute(
        text(
            f"SELECT create_hypertable('{_identifier(relation)}', '{_identifier(time_column)}', "
            f"'{_identifier(partitioning_column)}', {int(number_partitions)},  "
            "if_not_exists => TRUE)"
        )
    )


async def set_chunk_time_interval(conn: AsyncConnection, relation: str, interval: str) -> None:
    """Set the chunk time interval used for new chunks of a hypertable."""
    await conn.execute(
        text(
            f"SELECT set_chunk_time_interval('{_identifier(relation)}', "
            "CAST(CAST(:chunk_interval AS TEXT) AS INTERVAL))"
        ),
        {"chunk_interval": interval},
    )


async def is_hypertable(conn: AsyncConnection, relation: str) -> bool:
    """Check whether a relation is registered as a hypertable."""
    result = await conn.execute(
        text(
            """
            SELECT EXISTS (
                SELECT 1 FROM timescaledb_information.hypertables
                WHERE hypertable_name = :relation
            )
            """
        ),
        {"relation": relation},
    )
    return bool(result.scalar_one())


async def create_continuous_aggregate(conn: AsyncConnection, view: str, query: str) -> None:
    """Create a continuous aggregate.

    No ``IF NOT EXISTS``: creating the same view twice fails.

    Args:
        conn: Open connection (must not be inside a transaction block)
        view: View name
        query: Aggregating SELECT over a hypertable
    """
    await conn.execute(
        text(
            f"""
            CREATE MATERIALIZED VIEW {_identifier(view)}
            WITH (timescaledb.continuous) AS
            {query}
            """
        )
    )


async def enable_compression(
    conn: AsyncConnection, relation: str, orderby: str, segmentby: str
) -> None:
    """Enable native compression on a hypertable.

    Args:
        conn: Open connection
        relation: Hypertable name
        orderby: ``compress_orderby`` clause, e.g. ``time DESC``
        segmentby: ``compress_segmentby`` column
    """
    if "'" in orderby:
        raise ValueError(f"Invalid compress_orderby clause: {orderby!r}")
    await conn.execute(
        text(
            f"""
            ALTER TABLE {_identifier(relation)} SET (
                    timescaledb.compress,
                    timescaledb.compress_orderby = '{orderby}',
                    timescaledb.compress_segmentby = '{_identifier(segmentby)}'
            )
            """
        )
    )


async def add_compression_policy(conn: AsyncConnection, relation: str, compress_after: str) -> None:
    """Register a background job compressing chunks older than ``compress_after``."""
    await conn.execute(
        text(
            f"SELECT add_compression_policy('{_identifier(relation)}', "
            "CAST(CAST(:compress_after AS TEXT) AS INTERVAL))"
        ),
        {"compress_after": compress_after},
    )


async def compress_chunks(conn: AsyncConnection, relation: str, older_than: str) -> list[str]:
    """Compress every not yet compressed chunk older than ``older_than``.

    Returns:
        Names of the chunks passed to ``compress_chunk``
    """
    result = await conn.execute(
        text(
            f"""
            SELECT compress_chunk(i, if_not_compressed=>true)
            FROM show_chunks(
                '{_identifier(relation)}',
                older_than => CAST(CAST(:older_than AS TEXT) AS INTERVAL)
            ) i
            """
        ),
        {"older_than": older_than},
    )
    return [str(chunk) for (chunk,) in result.all()]


async def compression_stats(conn: AsyncConnection, relation: str) -> dict[str, Any] | None:
    """Read total sizes before and after compression.

    Returns:
        Raw and human-readable sizes, or None when nothing was compressed yet
    """
    result = await conn.execute(
        text(
            f"""
            SELECT before_compression_total_bytes,
                   after_compression_total_bytes,
                   pg_size_pretty(before_compression_total_bytes) as "before compression",
                   pg_size_pretty(after_compression_total_bytes) as "after compression"
            FROM hypertable_compression_stats('{_identifier(relation)}')
            """
        )
    )
    row = result.first()
    if row is None:
        return None
    before_bytes, after_bytes, before_pretty, after_pretty = row
    return {
        "before_bytes": before_bytes,
        "after_bytes": after_bytes,
        "before_pretty": before_pretty,
        "after_pretty": after_pretty,
    }


async def add_retention_policy(conn: AsyncConnection, relation: str, drop_after: str) -> None:
    """Register a background job dropping chunks older than ``drop_after``."""
    await conn.execute(
        text(
            f"SELECT add_retention_policy('{_identifier(relation)}', "
            "CAST(CAST(:drop_after AS TEXT) AS INTERVAL));"
        ),
        {"drop_after": drop_after},
    )


async def drop_chunks(conn: AsyncConnection, relation: str, older_than: str) -> list[str]:
    """Drop every chunk whose data is entirely older than ``older_than``.

    Returns:
        Names of the dropped chunks
    """
    result = await conn.execute(
        text(
            f"SELECT drop_chunks('{_identifier(relation)}', "
            "CAST(CAST(:older_than AS TEXT) AS INTERVAL));"
        ),
        {"older_than": older_than},
    )
    return [str(chunk) for (chunk,) in result.all()]
