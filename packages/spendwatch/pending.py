"""Durable staging queue for parsed transactions awaiting pickup.

The queue is one JSON array stored under ``pending:queue``. Every mutation is
a single ``KeyValueStore.update`` call, so the read and the rewrite of the
array form one exclusive section on the durable store itself. That holds for
any number of queue instances, threads or processes over the same store: an
``append`` can never interleave with ``pop_all`` and be cleared without being
returned.

Failure semantics
-----------------
Storage errors never propagate: a failed read is "no items" and a failed
write is logged at error level with a message distinct from the success
path. ``pop_all`` only returns items once the clear has been committed; if
the clear fails the items stay queued for the next pop, which keeps delivery
at most once.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from .logging_setup import get_logger
from .models import ParsedTransaction, QueuedTransaction
from .store import KeyValueStore, StorageError

_logger = get_logger("spendwatch.pending")

QUEUE_KEY = "pending:queue"
_EMPTY = "[]"


def _dump(items: Sequence[QueuedTransaction]) -> str:
    return json.dumps(
        [it.model_dump(mode="json") for it in items], ensure_ascii=False, separators=(",", ":")
    )


def _decode(raw: str | None) -> list[QueuedTransaction]:
    if raw is None or not raw.strip():
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        _logger.warning("pending:corrupt_queue; treating as empty", exc_info=True)
        return []
    if not isinstance(data, list):
        _logger.warning("pending:corrupt_queue type=%s; treating as empty", type(data).__name__)
        return []
    items: list[QueuedTransaction] = []
    for obj in data:
        try:
            items.append(QueuedTransaction.model_validate(obj))
        except ValidationError:
            _logger.warning("pending:skip_invalid_entry entry=%r", obj)
    return items


class PendingTransactionQueue:
    def __init__(self, store: KeyValueStore, *, key: str = QUEUE_KEY) -> None:
        self._store = store
        self._key = key

    def append(self, txn: ParsedTransaction) -> bool:
        """Queue ``txn`` with the default disposition; ``True`` once durable."""

        entry = QueuedTransaction.from_parsed(txn)
        size = 0

        def _add(raw: str | None) -> str:
            nonlocal size
            items = _decode(raw)
            items.append(entry)
            size = len(items)
            return _dump(items)

        try:
            self._store.update(self._key, _add)
        except StorageError:
            _logger.error("pending:append_failed id=%s", txn.id)
            return False
        _logger.info("pending:appended id=%s size=%d", txn.id, size)
        return True

    def pop_all(self) -> list[QueuedTransaction]:
        """Return every queued entry in insertion order and leave the queue empty."""

        popped: list[QueuedTransaction] = []

        def _take(raw: str | None) -> str | None:
            nonlocal popped
            popped = _decode(raw)
            return _EMPTY if popped else None

        try:
            self._store.update(self._key, _take)
        except StorageError:
            _logger.error("pending:pop_failed size=%d", len(popped))
            return []
        if popped:
            _logger.info("pending:popped size=%d", len(popped))
        return popped

    def requeue(self, items: Sequence[QueuedTransaction]) -> bool:
        """Put previously popped ``items`` back ahead of anything queued since."""

        if not items:
            return True

        def _prepend(raw: str | None) -> str:
            return _dump([*items, *_decode(raw)])

        try:
            self._store.update(self._key, _prepend)
        except StorageError:
            _logger.error("pending:requeue_failed size=%d", len(items))
            return False
        _logger.info("pending:requeued size=%d", len(items))
        return True

    def peek(self) -> list[QueuedTransaction]:
        """Read the queue without consuming it."""

        try:
            return _decode(self._store.get(self._key))
        except StorageError:
            return []

    def update_disposition(self, txn_id: str, category: str, note: str | None = None) -> bool:
        """Set ``category`` (and ``note`` when given) on a still-queued entry.

        Returns ``False`` when the id is no longer queued (typically already
        synced); that is expected, not an error.
        """

        found = False

        def _apply(raw: str | None) -> str | None:
            nonlocal found
            updated: list[QueuedTransaction] = []
            for it in _decode(raw):
                if it.id == txn_id:
                    changes: dict[str, Any] = {"category": category}
                    if note is not None:
                        changes["note"] = note
                    it = it.model_copy(update=changes)
                    found = True
                updated.append(it)
            return _dump(updated) if found else None

        try:
            self._store.update(self._key, _apply)
        except StorageError:
            _logger.error("pending:update_failed id=%s", txn_id)
            return False
        if not found:
            _logger.info("pending:update_skipped id=%s reason=not_queued", txn_id)
            return False
        _logger.info("pending:updated id=%s category=%s", txn_id, category)
        return True


__all__ = ["QUEUE_KEY", "PendingTransactionQueue"]
