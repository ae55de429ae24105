"""Synthetic machine and CPU usage data."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4

from loguru import logger
from sqlalchemy import insert, text
from sqlalchemy.ext.asyncio import AsyncConnection

from infrastructure.persistence.models import MachineModel


INSERT_SERIES_SQL = """
INSERT INTO cpu_data (time, machine_id, value)
SELECT g.id,
       CAST(:machine_id AS INTEGER),
       random()
FROM generate_series(
    now() - CAST(CAST(:span AS TEXT) AS INTERVAL), now(),
    CAST(CAST(:step AS TEXT) AS INTERVAL)
) as g(id)
"""


@dataclass(slots=True)
class SeedStats:
    """Summary of created records."""

    machine_ids: list[int]
    rows_inserted: int

    @property
    def machines_created(self) -> int:
        return len(self.machine_ids)


async def seed_synthetic_data(
    conn: AsyncConnection,
    machine_count: int,
    span: str,
    step: str,
) -> SeedStats:
    """Create ``machine_count`` machines and a CPU series for each of them.

    Every machine is named by a random UUID. Its series covers ``now() - span`` to
    ``now()`` at ``step`` resolution, generated server side.

    Args:
        conn: Open connection
        machine_count: Number of machines to create
        span: Length of the generated series
        step: Distance between two samples

    Returns:
        Ids of the created machines and number of inserted rows
    """
    machine_ids = await _seed_machines(conn, machine_count)

    rows_inserted = 0
    for machine_id in machine_ids:
        rows_inserted += await _seed_series(conn, machine_id, span, step)

    logger.info(
        "Synthetic CPU data inserted",
        machines=len(machine_ids),
        rows=rows_inserted,
    )

    return SeedStats(machine_ids=machine_ids, rows_inserted=rows_inserted)


async def _seed_machines(conn: AsyncConnection, machine_count: int) -> list[int]:
    names = [str(uuid4()) for _ in range(machine_count)]

    machine_ids: list[int] = []
    for name in names:
        result = await conn.execute(
            insert(MachineModel).values(name=name).returning(MachineModel.id)
        )
        machine_ids.append(result.scalar_one())
    return machine_ids


async def _seed_series(conn: AsyncConnection, machine_id: int, span: str, step: str) -> int:
    result = await conn.execute(
        text(INSERT_SERIES_SQL),
        {"machine_id": machine_id, "span": span, "step": step},
    )
    logger.debug("Series inserted", machine_id=machine_id, rows=result.rowcount)
    return max(result.rowcount, 0)
