"""Analytical read queries over the CPU hypertable and its continuous aggregate."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncConnection

from infrastructure.persistence import timescale
from infrastructure.persistence.models import CpuDataModel


CPU_AVG_DAILY_VIEW = "cpu_consommation_avg_daily"

CPU_AVG_DAILY_QUERY = """
    SELECT time_bucket('1 DAYS', time) AS bucket, avg(value) AS avg, machine_id
    FROM cpu_data
    GROUP BY bucket, machine_id
"""

TOP_DAILY_AVERAGES_SQL = """
SELECT time_bucket('1 DAYS', time) AS bucket, avg(value) AS avg, name
FROM cpu_data
JOIN machines ON machines.id = cpu_data.machine_id
GROUP BY bucket, name
ORDER BY avg DESC
LIMIT :limit
"""

DAILY_FIRST_LAST_SQL = """
SELECT time_bucket('1 DAYS', time) AS bucket,
       first(value, time) AS first, last(value, time) as last, name
FROM cpu_data
JOIN machines ON machines.id = cpu_data.machine_id
GROUP BY bucket, name
ORDER BY bucket DESC
LIMIT :limit
"""

TOP_AGGREGATE_AVERAGES_SQL = """
SELECT bucket, avg, name
FROM cpu_consommation_avg_daily
JOIN machines ON machines.id = cpu_consommation_avg_daily.machine_id
ORDER BY avg DESC
LIMIT :limit
"""


class BucketAverage(BaseModel):
    """Average CPU usage of one machine over one daily bucket."""

    bucket: datetime
    avg: float
    name: str

    def format(self) -> str:
        return f"{self.bucket}: {self.avg:f} on {self.name}"


class BucketFirstLast(BaseModel):
    """First and last CPU sample of one machine within one daily bucket."""

    bucket: datetime
    first: float
    last: float
    name: str

    def format(self) -> str:
        return f"{self.bucket}: {self.first:f}, {self.last:f} on {self.name}"


class CompressionStats(BaseModel):
    """Hypertable size before and after compression."""

    before_bytes: int | None = None
    after_bytes: int | None = None
    before_pretty: str | None = None
    after_pretty: str | None = None

    def format(self) -> str:
        if self.before_pretty is None and self.after_pretty is None:
            return "no compressed chunks"
        return f"before {self.before_pretty}: after {self.after_pretty}"


async def top_daily_averages(conn: AsyncConnection, limit: int = 10) -> list[BucketAverage]:
    """Daily buckets with the highest average CPU usage, across all machines."""
    result = await conn.execute(text(TOP_DAILY_AVERAGES_SQL), {"limit": limit})
    return [
        BucketAverage(bucket=bucket, avg=avg, name=name) for bucket, avg, name in result.all()
    ]


async def daily_first_last(conn: AsyncConnection, limit: int = 10) -> list[BucketFirstLast]:
    """Most recent daily buckets with their first and last samples."""
    result = await conn.execute(text(DAILY_FIRST_LAST_SQL), {"limit": limit})
    return [
        BucketFirstLast(bucket=bucket, first=first, last=last, name=name)
        for bucket, first, last, name in result.all()
    ]


async def top_aggregate_averages(conn: AsyncConnection, limit: int = 10) -> list[BucketAverage]:
    """Same ranking as :func:`top_daily_averages`, read from the continuous aggregate."""
    result = await conn.execute(text(TOP_AGGREGATE_AVERAGES_SQL), {"limit": limit})
    return [
        BucketAverage(bucket=bucket, avg=avg, name=name) for bucket, avg, name in result.all()
    ]


async def create_daily_average_aggregate(conn: AsyncConnection) -> None:
    """Create the daily per-machine average continuous aggregate."""
    await timescale.create_continuous_aggregate(conn, CPU_AVG_DAILY_VIEW, CPU_AVG_DAILY_QUERY)


async def cpu_compression_stats(conn: AsyncConnection) -> CompressionStats:
    """Size of ``cpu_data`` before and after compression."""
    stats = await timescale.compression_stats(conn, CpuDataModel.__tablename__)
    if stats is None:
        return CompressionStats()
    return CompressionStats(**stats)


async def count_cpu_rows(conn: AsyncConnection) -> int:
    """Number of rows currently stored in ``cpu_data``."""
    result = await conn.execute(select(func.count(CpuDataModel.time)))
    return int(result.scalar_one())


async def oldest_cpu_sample(conn: AsyncConnection) -> datetime | None:
    """Timestamp of the oldest remaining ``cpu_data`` row."""
    result = await conn.execute(select(func.min(CpuDataModel.time)))
    return result.scalar_one()
