"""Pytest configuration for test isolation.

The CLI and ``Settings.from_env()`` resolve the durable store from
``SPENDWATCH_DATABASE_URL``, defaulting to a project-relative SQLite file
(``./.spendwatch``). Tests that shared that file would see each other's queue,
dedup state and ledger, so every test gets its own database under
``tmp_path`` and runs with ``tmp_path`` as the working directory.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from db.client import dispose_engines

from spendwatch.store import MemoryKeyValueStore, SqlKeyValueStore


@pytest.fixture(autouse=True)
def _isolate_database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    """Point the store at a per-test SQLite file and clear stray settings."""

    db_file = tmp_path / "db" / "spendwatch.db"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    url = f"sqlite+pysqlite:///{os.fspath(db_file)}"
    monkeypatch.setenv("SPENDWATCH_DATABASE_URL", url)
    for name in (
        "DATABASE_URL",
        "SPENDWATCH_DEFAULT_SMS_APP",
        "SPENDWATCH_DEDUP_WINDOW_MS",
        "SPENDWATCH_MERCHANT_START_OFFSET",
        "SPENDWATCH_DETERMINISTIC_IDS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield url
    dispose_engines()


@pytest.fixture
def database_url(_isolate_database: str) -> str:
    return _isolate_database


@pytest.fixture
def sql_store(database_url: str) -> SqlKeyValueStore:
    return SqlKeyValueStore(database_url)


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()
