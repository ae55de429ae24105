"""Integration tests for the demo workflow against a real TimescaleDB server."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from application.demo import DemoRunner, StepExecutionError
from application.queries import count_cpu_rows
from core.config import DemoSettings
from infrastructure.persistence import timescale


pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


async def _samples_per_machine(conn: AsyncConnection, settings: DemoSettings) -> int:
    result = await conn.execute(
        text(
            """
            SELECT count(*) FROM generate_series(
                now() - CAST(CAST(:span AS TEXT) AS INTERVAL),
                now(),
                CAST(CAST(:step AS TEXT) AS INTERVAL)
            )
            """
        ),
        {"span": settings.series_span, "step": settings.series_step},
    )
    return int(result.scalar_one())


def _runner(conn: AsyncConnection, settings: DemoSettings) -> DemoRunner:
    return DemoRunner(conn, settings, output=lambda line: None)


async def test_create_schema_builds_hypertable(
    conn: AsyncConnection, integration_settings: DemoSettings
) -> None:
    """Test both tables exist and cpu_data is a hypertable."""
    await _runner(conn, integration_settings).run_step("create_schema")

    result = await conn.execute(
        text(
            """
            SELECT table_name FROM information_schema.tables
            WHERE table_name IN ('machines', 'cpu_data')
            ORDER BY table_name
            """
        )
    )
    assert [row[0] for row in result.all()] == ["cpu_data", "machines"]
    assert await timescale.is_hypertable(conn, "cpu_data") is True


async def test_create_schema_is_repeatable(
    conn: AsyncConnection, integration_settings: DemoSettings
) -> None:
    """Test re-running the schema step starts from empty tables."""
    runner = _runner(conn, integration_settings)
    await runner.run_step("create_schema")
    await runner.run_step("insert_data")

    await runner.run_step("create_schema")

    assert await count_cpu_rows(conn) == 0
    assert await timescale.is_hypertable(conn, "cpu_data") is True


async def test_insert_data_row_counts(
    conn: AsyncConnection, integration_settings: DemoSettings
) -> None:
    """Test one series per machine, each tagged with an existing machine id."""
    runner = _runner(conn, integration_settings)
    await runner.run_step("create_schema")
    await runner.run_step("insert_data")

    machine_count = integration_settings.machine_count
    samples = await _samples_per_machine(conn, integration_settings)

    machines = await conn.execute(text("SELECT count(*) FROM machines"))
    assert machines.scalar_one() == machine_count
    assert await count_cpu_rows(conn) == machine_count * samples
    assert runner.report.seed is not None
    assert runner.report.seed.rows_inserted == machine_count * samples

    bounds = await conn.execute(
        text(
            """
            SELECT count(*) FILTER (WHERE machine_id IS NULL),
                   min(machine_id), max(machine_id),
                   min(value), max(value)
            FROM cpu_data
            """
        )
    )
    nulls, lowest_id, highest_id, lowest_value, highest_value = bounds.one()
    assert nulls == 0
    assert lowest_id == 1
    assert highest_id == machine_count
    assert 0.0 <= lowest_value <= highest_value < 1.0


async def test_continuous_aggregate_cannot_be_created_twice(
    conn: AsyncConnection, integration_settings: DemoSettings
) -> None:
    """Test the second creation of the daily view fails."""
    runner = _runner(conn, integration_settings)
    for step in ("create_schema", "insert_data", "create_continuous_aggregate"):
        await runner.run_step(step)

    with pytest.raises(StepExecutionError) as exc_info:
        await runner.run_step("create_continuous_aggregate")

    assert exc_info.value.step == "create_continuous_aggregate"
    assert "already exists" in str(exc_info.value)


async def test_full_run(conn: AsyncConnection, integration_settings: DemoSettings) -> None:
    """Test the whole workflow compresses and then trims old data."""
    lines: list[str] = []
    runner = DemoRunner(conn, integration_settings, output=lines.append)

    report = await runner.run()

    assert report.steps_completed == list(DemoRunner.STEPS)
    assert len(report.top_averages) == integration_settings.query_limit
    assert len(report.aggregate_averages) == integration_settings.query_limit
    averages = [row.avg for row in report.top_averages]
    assert averages == sorted(averages, reverse=True)

    assert report.compressed_chunks
    assert report.compression is not None
    assert report.compression.after_bytes <= report.compression.before_bytes

    assert report.rows_before_delete is not None
    assert report.rows_after_delete is not None
    assert report.rows_after_delete < report.rows_before_delete
    assert report.oldest_sample_after_delete is not None
    threshold = datetime.now(UTC) - timedelta(days=31) - timedelta(days=1)
    assert report.oldest_sample_after_delete >= threshold

    assert lines[0] == "********* Requesting by average"
    assert lines[-1] == f"after deleting data {report.rows_after_delete}"
