"""Demo workflow against a TimescaleDB server.

The runner issues a fixed sequence of steps over one connection. Each step relies on
the state the previous ones left in the database; a failing statement aborts the
whole run without retry or cleanup.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from application.queries import (
    BucketAverage,
    BucketFirstLast,
    CompressionStats,
    count_cpu_rows,
    cpu_compression_stats,
    create_daily_average_aggregate,
    daily_first_last,
    oldest_cpu_sample,
    top_aggregate_averages,
    top_daily_averages,
)
from application.seed import SeedStats, seed_synthetic_data
from core.config import DemoSettings
from core.database import DatabaseError
from core.logging import get_step_logger, log_performance_metric
from infrastructure.persistence import timescale
from infrastructure.persistence.schema import CPU_DATA_TABLE, recreate_schema


COMPRESS_ORDERBY = "time DESC"
COMPRESS_SEGMENTBY = "machine_id"


class StepExecutionError(DatabaseError):
    """Raised when a statement inside a demo step fails."""

    def __init__(self, step: str, cause: Exception) -> None:
        """Initialize step execution error.

        Args:
            step: Name of the failed step
            cause: Underlying database exception
        """
        super().__init__(f"Step '{step}' failed: {cause}")
        self.step = step
        self.cause = cause


@dataclass(slots=True)
class DemoReport:
    """Everything the demo printed, in structured form."""

    steps_completed: list[str] = field(default_factory=list)
    data_nodes: list[str] = field(default_factory=list)
    seed: SeedStats | None = None
    top_averages: list[BucketAverage] = field(default_factory=list)
    first_last: list[BucketFirstLast] = field(default_factory=list)
    aggregate_averages: list[BucketAverage] = field(default_factory=list)
    compressed_chunks: list[str] = field(default_factory=list)
    compression: CompressionStats | None = None
    rows_before_delete: int | None = None
    rows_after_delete: int | None = None
    dropped_chunks: list[str] = field(default_factory=list)
    oldest_sample_after_delete: datetime | None = None


class DemoRunner:
    """Runs the demo steps in order against a single connection."""

    STEPS = (
        "scale_connection",
        "create_schema",
        "insert_data",
        "execute_queries",
        "create_continuous_aggregate",
        "execute_continuous_aggregate",
        "compress_data",
        "delete_data",
    )

    def __init__(
        self,
        conn: AsyncConnection,
        settings: DemoSettings | None = None,
        output: Callable[[str], None] = print,
    ) -> None:
        """Initialize demo runner.

        Args:
            conn: Open connection, in autocommit mode
            settings: Workflow settings. Uses defaults if None.
            output: Sink for the human-readable result lines
        """
        self._conn = conn
        self._settings = settings or DemoSettings()
        self._output = output
        self.report = DemoReport()

    async def run(self) -> DemoReport:
        """Execute every step in order.

        Returns:
            Report of the completed run

        Raises:
            StepExecutionError: If any statement fails; later steps are not run
        """
        for step in self.STEPS:
            await self.run_step(step)
        return self.report

    async def run_step(self, step: str) -> None:
        """Execute a single step by name, timing it and wrapping database failures."""
        if step not in self.STEPS:
            raise ValueError(f"Unknown demo step: {step}")

        action: Callable[[], Awaitable[None]] = getattr(self, step)
        step_logger = get_step_logger(step)
        step_logger.info(f"Running step {step}")

        start = time.perf_counter()
        try:
            await action()
        except SQLAlchemyError as e:
            duration_ms = (time.perf_counter() - start) * 1000
            log_performance_metric(step, duration_ms, success=False)
            raise StepExecutionError(step, e) from e

        duration_ms = (time.perf_counter() - start) * 1000
        log_performance_metric(step, duration_ms)
        self.report.steps_completed.append(step)

    async def scale_connection(self) -> None:
        """Attach the configured data nodes to the access node."""
        if not self._settings.data_nodes:
            logger.info("No data nodes configured, skipping multi-node provisioning")
            return

        for node in self._settings.data_nodes:
            await timescale.add_data_node(
                self._conn, node.name, node.host, self._settings.data_node_password
            )
            logger.info("Data node attached", node=node.name, host=node.host)
            self.report.data_nodes.append(node.name)

    async def create_schema(self) -> None:
        """Drop and recreate ``machines`` and the ``cpu_data`` hypertable."""
        if self._settings.create_extension:
            await timescale.create_extension(self._conn)
        await recreate_schema(self._conn, self._settings.chunk_time_interval)

    async def insert_data(self) -> None:
        """Insert synthetic machines and their CPU series."""
        self.report.seed = await seed_synthetic_data(
            self._conn,
            machine_count=self._settings.machine_count,
            span=self._settings.series_span,
            step=self._settings.series_step,
        )

    async def execute_queries(self) -> None:
        """Print the top daily averages and the latest first/last samples."""
        limit = self._settings.query_limit

        self._output("********* Requesting by average")
        self.report.top_averages = await top_daily_averages(self._conn, limit)
        for average in self.report.top_averages:
            self._output(average.format())

        self._output("********* Requesting first and last values")
        self.report.first_last = await daily_first_last(self._conn, limit)
        for first_last in self.report.first_last:
            self._output(first_last.format())

    async def create_continuous_aggregate(self) -> None:
        """Create the daily average continuous aggregate.

        Not idempotent: a second call fails because the view already exists.
        """
        await create_daily_average_aggregate(self._conn)

    async def execute_continuous_aggregate(self) -> None:
        """Print the top daily averages read from the continuous aggregate."""
        self._output("********* Exec continuous aggregate")
        self.report.aggregate_averages = await top_aggregate_averages(
            self._conn, self._settings.query_limit
        )
        for average in self.report.aggregate_averages:
            self._output(average.format())

    async def compress_data(self) -> None:
        """Enable compression, add a policy, compress old chunks and print the sizes."""
        self._output("Activating compression")

        await timescale.enable_compression(
            self._conn, CPU_DATA_TABLE, COMPRESS_ORDERBY, COMPRESS_SEGMENTBY
        )
        await timescale.add_compression_policy(
            self._conn, CPU_DATA_TABLE, self._settings.compress_after
        )
        self.report.compressed_chunks = await timescale.compress_chunks(
            self._conn, CPU_DATA_TABLE, self._settings.compress_after
        )
        logger.info("Chunks compressed", chunks=len(self.report.compressed_chunks))

        self.report.compression = await cpu_compression_stats(self._conn)
        self._output(self.report.compression.format())

    async def delete_data(self) -> None:
        """Add a retention policy and drop old chunks, printing row counts around it."""
        self.report.rows_before_delete = await count_cpu_rows(self._conn)
        self._output(f"before deleting data {self.report.rows_before_delete}")

        await timescale.add_retention_policy(self._conn, CPU_DATA_TABLE, self._settings.retain_for)
        self.report.dropped_chunks = await timescale.drop_chunks(
            self._conn, CPU_DATA_TABLE, self._settings.retain_for
        )
        logger.info("Chunks dropped", chunks=len(self.report.dropped_chunks))

        self.report.rows_after_delete = await count_cpu_rows(self._conn)
        self._output(f"after deleting data {self.report.rows_after_delete}")

        self.report.oldest_sample_after_delete = await oldest_cpu_sample(self._conn)
        logger.info(
            "Oldest remaining sample",
            oldest=str(self.report.oldest_sample_after_delete),
        )
