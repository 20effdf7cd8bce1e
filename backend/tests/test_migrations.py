from __future__ import annotations

import asyncio
from typing import Any, List

import pytest

from deeplearn.db import migrate


class FakeTransaction:
    async def __aenter__(self) -> None:
        return None

    async def __aexit__(self, *exc_info: Any) -> None:
        return None


class FakeConnection:
    def __init__(self, applied: List[str]) -> None:
        self.applied = list(applied)
        self.executed: List[str] = []
        self.closed = False

    async def execute(self, sql: str, *args: Any) -> None:
        if sql.startswith("INSERT INTO schema_migrations"):
            self.applied.append(args[0])
            return
        self.executed.append(sql)

    async def fetch(self, sql: str) -> List[tuple]:
        return [(name,) for name in self.applied]

    def transaction(self) -> FakeTransaction:
        return FakeTransaction()

    async def close(self) -> None:
        self.closed = True


def test_migration_files_are_ordered() -> None:
    names = [path.name for path in migrate._iter_migration_files(migrate.MIGRATIONS_DIR)]
    assert names[:2] == ["001_init.sql", "002_threads_created_at_clock.sql"]


def test_thread_timestamps_advance_within_a_batch() -> None:
    # One feed is inserted in a single transaction; NOW() would tie every row.
    sql = (migrate.MIGRATIONS_DIR / "002_threads_created_at_clock.sql").read_text(encoding="utf-8")
    assert "ALTER COLUMN created_at SET DEFAULT clock_timestamp()" in sql


def test_apply_migrations_skips_applied_files(monkeypatch: pytest.MonkeyPatch) -> None:
    conn = FakeConnection(applied=["001_init.sql"])

    async def fake_connect(**_: Any) -> FakeConnection:
        return conn

    monkeypatch.setattr("deeplearn.db.migrate.asyncpg.connect", fake_connect)

    asyncio.run(migrate.apply_migrations())

    assert "002_threads_created_at_clock.sql" in conn.applied
    assert not any("CREATE TABLE IF NOT EXISTS topics" in sql for sql in conn.executed)
    assert any("clock_timestamp()" in sql for sql in conn.executed)
    assert conn.closed
