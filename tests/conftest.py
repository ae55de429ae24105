"""Global test configuration and fixtures for the TimescaleDB demo."""

import os
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from faker import Faker
from sqlalchemy.ext.asyncio import AsyncConnection

from core.config import DemoSettings


# Initialize Faker
fake = Faker()
Faker.seed(42)  # For reproducible tests


@pytest.fixture
def make_average_rows() -> Callable[[int], list[tuple[datetime, float, str]]]:
    """Build (bucket, avg, machine name) rows sorted by descending average."""

    def _make_average_rows(count: int) -> list[tuple[datetime, float, str]]:
        rows = [
            (
                fake.date_time_this_year(tzinfo=UTC),
                fake.pyfloat(min_value=0, max_value=1),
                fake.uuid4(),
            )
            for _ in range(count)
        ]
        return sorted(rows, key=lambda row: row[1], reverse=True)

    return _make_average_rows


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep developer .env files and TSDEMO_* variables out of the tests."""
    for key in list(os.environ):
        if key.startswith("TSDEMO_") and key != "TSDEMO_TEST_DATABASE_URL":
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("core.config._settings", None)


@pytest.fixture
def make_result() -> Callable[..., MagicMock]:
    """Build a mocked SQLAlchemy result."""

    def _make_result(
        rows: list[tuple[Any, ...]] | None = None,
        scalar: Any = None,
        rowcount: int = -1,
    ) -> MagicMock:
        result = MagicMock()
        rows = rows or []
        result.all.return_value = rows
        result.first.return_value = rows[0] if rows else None
        result.scalar.return_value = scalar
        result.scalar_one.return_value = scalar
        result.rowcount = rowcount
        return result

    return _make_result


@pytest.fixture
def mock_conn(make_result: Callable[..., MagicMock]) -> AsyncMock:
    """Provide a mocked async connection returning empty results."""
    conn = AsyncMock(spec=AsyncConnection)
    conn.execute.return_value = make_result()
    return conn


@pytest.fixture
def executed_sql() -> Callable[[AsyncMock], list[str]]:
    """Return the SQL text of every statement passed to ``conn.execute``."""

    def _executed_sql(conn: AsyncMock) -> list[str]:
        return [str(call.args[0]) for call in conn.execute.call_args_list]

    return _executed_sql


@pytest.fixture
def demo_settings() -> DemoSettings:
    """Provide demo settings with a small dataset."""
    return DemoSettings(machine_count=3, series_span="2 days", series_step="1 hours")
