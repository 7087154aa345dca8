"""Durable key-value storage used by the queue, dedup gate and ledger.

Contract (``KeyValueStore``):

- ``get(key)`` returns the stored string or ``None`` when the key is absent.
  An I/O or database failure raises :class:`StorageError` so callers can tell
  "nothing stored" from "could not read".
- ``set(key, value)`` writes durably before returning and reports success as
  a ``bool``. Failures are logged here at error level and never raised.
- ``update(key, fn)`` is the exclusive read-modify-write section: ``fn`` gets
  the current value and returns the replacement (``None`` leaves the key
  alone). No other ``update`` or ``set`` on the same store, from any instance
  or process, interleaves with it. Any failure rolls the write back and
  raises :class:`StorageError`.

``SqlKeyValueStore`` keeps one row per key in ``kv_entries`` through the
shared ``db`` library; every call commits its own transaction.
``MemoryKeyValueStore`` is the in-process equivalent.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol

from db.client import session_scope
from db.models.kv import KvEntry
from sqlalchemy.exc import SQLAlchemyError

from .logging_setup import get_logger

_logger = get_logger("spendwatch.store")

Updater = Callable[[str | None], str | None]


class StorageError(RuntimeError):
    """The durable store could not be read or an atomic update failed."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> bool: ...

    def update(self, key: str, fn: Updater) -> None: ...


class SqlKeyValueStore:
    """``KeyValueStore`` on the ``kv_entries`` table."""

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url

    def get(self, key: str) -> str | None:
        try:
            with session_scope(database_url=self.database_url) as session:
                row = session.get(KvEntry, key)
                return row.value if row is not None else None
        except SQLAlchemyError as exc:
            _logger.error("kv:get_failed key=%s", key, exc_info=True)
            raise StorageError(f"failed to read key {key!r}") from exc

    def set(self, key: str, value: str) -> bool:
        try:
            with session_scope(database_url=self.database_url) as session:
                session.merge(KvEntry(key=key, value=value))
        except SQLAlchemyError:
            _logger.error("kv:set_failed key=%s bytes=%d", key, len(value), exc_info=True)
            return False
        return True

    def update(self, key: str, fn: Updater) -> None:
        # One session: the SQLite engine opens it with BEGIN IMMEDIATE, other
        # backends lock the row.
        try:
            with session_scope(database_url=self.database_url) as session:
                row = session.get(KvEntry, key, with_for_update=True)
                new_value = fn(row.value if row is not None else None)
                if new_value is None:
                    return
                if row is None:
                    session.add(KvEntry(key=key, value=new_value))
                else:
                    row.value = new_value
        except SQLAlchemyError as exc:
            _logger.error("kv:update_failed key=%s", key, exc_info=True)
            raise StorageError(f"failed to update key {key!r}") from exc


class MemoryKeyValueStore:
    """Process-local store with the same contract; nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> bool:
        with self._lock:
            self._data[key] = value
        return True

    def update(self, key: str, fn: Updater) -> None:
        with self._lock:
            new_value = fn(self._data.get(key))
            if new_value is not None:
                self._data[key] = new_value


__all__ = ["StorageError", "Updater", "KeyValueStore", "SqlKeyValueStore", "MemoryKeyValueStore"]
