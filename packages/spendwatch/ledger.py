"""Ledger persistence and the exactly-once merge of popped queue entries.

- :class:`TransactionMerger` reconciles freshly popped entries with the local
  ledger: deduplicate by ``id`` with popped entries authoritative, then sort
  by timestamp, newest first.
- :class:`LedgerRepository` reads the ledger stored under
  ``ledger:transactions`` and merges into it with one atomic store update,
  which is also how manual entries land.
- :class:`LedgerSync` runs pop -> merge -> save, serialized so a second
  concurrent call shares the in-flight result instead of merging twice.
"""

from __future__ import annotations

import json
import threading
import uuid
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Future
from dataclasses import dataclass
from decimal import Decimal

from pydantic import ValidationError

from .categories import ledger_category, resolve_category
from .logging_setup import get_logger
from .models import LedgerTransaction, QueuedTransaction, TransactionType, now_ms
from .pending import PendingTransactionQueue
from .store import KeyValueStore, StorageError

_logger = get_logger("spendwatch.ledger")

LEDGER_KEY = "ledger:transactions"


def to_ledger(queued: QueuedTransaction) -> LedgerTransaction:
    """Convert a queue entry into a ledger record (untouched category -> ``other``)."""

    return LedgerTransaction(
        id=queued.id,
        amount=queued.amount,
        type=queued.type,
        category=ledger_category(queued.category),
        timestamp=queued.timestamp,
        note=queued.note,
        merchant=queued.merchant,
    )


class TransactionMerger:
    def merge(
        self,
        popped: Iterable[QueuedTransaction | LedgerTransaction],
        local_ledger: Iterable[LedgerTransaction],
    ) -> list[LedgerTransaction]:
        """Return the new ledger: one record per id, newest first.

        Popped entries come ahead of the local ledger. For an id present in
        both, the popped version wins since it carries the user's latest
        categorization; within one input the last occurrence wins.
        """

        by_id: dict[str, LedgerTransaction] = {}
        for item in popped:
            tx = to_ledger(item) if isinstance(item, QueuedTransaction) else item
            by_id[tx.id] = tx
        fresh = set(by_id)
        for tx in local_ledger:
            if tx.id not in fresh:
                by_id[tx.id] = tx
        # sorted() is stable, so equal timestamps keep popped-then-local order
        return sorted(by_id.values(), key=lambda t: t.timestamp, reverse=True)


def _dump(transactions: Sequence[LedgerTransaction]) -> str:
    return json.dumps(
        [t.model_dump(mode="json") for t in transactions],
        ensure_ascii=False,
        separators=(",", ":"),
    )


def _decode(raw: str | None) -> list[LedgerTransaction]:
    if raw is None or not raw.strip():
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        _logger.warning("ledger:corrupt; treating as empty", exc_info=True)
        return []
    if not isinstance(data, list):
        _logger.warning("ledger:corrupt type=%s; treating as empty", type(data).__name__)
        return []
    out: list[LedgerTransaction] = []
    for obj in data:
        try:
            out.append(LedgerTransaction.model_validate(obj))
        except ValidationError:
            _logger.warning("ledger:skip_invalid_entry entry=%r", obj)
    return out


class LedgerRepository:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str = LEDGER_KEY,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._key = key
        self._clock = clock

    def load_strict(self) -> list[LedgerTransaction]:
        """Load the ledger; raise ``StorageError`` when the store cannot be read.

        A corrupt payload is logged and read as empty; invalid entries are
        skipped individually.
        """

        return _decode(self._store.get(self._key))

    def load(self) -> list[LedgerTransaction]:
        try:
            return self.load_strict()
        except StorageError:
            return []

    def save(self, transactions: Sequence[LedgerTransaction]) -> bool:
        """Replace the whole ledger with ``transactions``."""

        ok = self._store.set(self._key, _dump(transactions))
        if ok:
            _logger.info("ledger:saved size=%d", len(transactions))
        else:
            _logger.error("ledger:save_failed size=%d", len(transactions))
        return ok

    def merge_in(
        self,
        incoming: Sequence[QueuedTransaction | LedgerTransaction],
        merger: TransactionMerger | None = None,
    ) -> list[LedgerTransaction]:
        """Merge ``incoming`` into the stored ledger in one atomic update.

        Returns the new ledger. Raises ``StorageError`` when the update could
        not be committed; the stored ledger is then unchanged.
        """

        merger = merger or TransactionMerger()
        merged: list[LedgerTransaction] = []

        def _apply(raw: str | None) -> str:
            nonlocal merged
            merged = merger.merge(incoming, _decode(raw))
            return _dump(merged)

        try:
            self._store.update(self._key, _apply)
        except StorageError:
            _logger.error("ledger:save_failed incoming=%d", len(incoming))
            raise
        _logger.info("ledger:saved size=%d", len(merged))
        return merged

    def add(
        self,
        amount: Decimal,
        category: str,
        *,
        type: TransactionType = TransactionType.EXPENSE,
        note: str | None = None,
    ) -> LedgerTransaction:
        """Record a manual entry, bypassing the parser.

        Raises ``ValueError`` for a non-positive amount or unknown category and
        ``StorageError`` when the ledger cannot be updated.
        """

        if amount <= 0:
            raise ValueError("Amount must be greater than 0")
        tx = LedgerTransaction(
            id=str(uuid.uuid4()),
            amount=amount,
            type=type,
            category=resolve_category(category),
            timestamp=self._clock(),
            note=note or None,
        )
        self.merge_in([tx])
        return tx


@dataclass(frozen=True, slots=True)
class SyncResult:
    popped: int
    ledger: list[LedgerTransaction]


class LedgerSync:
    def __init__(
        self,
        queue: PendingTransactionQueue,
        repository: LedgerRepository,
        *,
        merger: TransactionMerger | None = None,
    ) -> None:
        self._queue = queue
        self._repository = repository
        self._merger = merger or TransactionMerger()
        self._guard = threading.Lock()
        self._inflight: Future[SyncResult] | None = None

    def sync(self) -> SyncResult:
        with self._guard:
            fut = self._inflight
            owner = fut is None
            if fut is None:
                fut = Future()
                self._inflight = fut
        if not owner:
            _logger.debug("sync:joined_inflight")
            return fut.result()

        try:
            result = self._run()
        except BaseException as exc:
            fut.set_exception(exc)
            raise
        else:
            fut.set_result(result)
            return result
        finally:
            with self._guard:
                self._inflight = None

    def _run(self) -> SyncResult:
        # Read the ledger before popping so an unreadable ledger leaves the queue intact
        try:
            local = self._repository.load_strict()
        except StorageError:
            _logger.error("sync:skipped reason=ledger_unreadable")
            return SyncResult(popped=0, ledger=[])

        popped = self._queue.pop_all()
        if not popped:
            return SyncResult(popped=0, ledger=local)

        try:
            merged = self._repository.merge_in(popped, self._merger)
        except StorageError:
            _logger.error("sync:save_failed; requeueing size=%d", len(popped))
            self._queue.requeue(popped)
            return SyncResult(popped=0, ledger=local)

        _logger.info("sync:merged popped=%d ledger=%d", len(popped), len(merged))
        return SyncResult(popped=len(popped), ledger=merged)


__all__ = [
    "LEDGER_KEY",
    "to_ledger",
    "TransactionMerger",
    "LedgerRepository",
    "SyncResult",
    "LedgerSync",
]
