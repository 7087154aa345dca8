"""Suppression of repeated detections of the same transaction.

Banks' messages are often posted several times in a burst (update, then
replace). A candidate is a duplicate when its amount equals the last accepted
amount and its timestamp lies within ``window_ms`` of the last accepted
timestamp. Merchant and type are ignored because they can differ between
deliveries of the same message.

The last-seen state lives in the durable store under ``dedup:last_seen``.
Each check reads and rewrites it in one ``KeyValueStore.update``, so gates in
different threads or processes over the same store see one another's
acceptances and two near-simultaneous deliveries cannot both pass. When the
store is unreadable the gate falls back to the last state it saw itself.
"""

from __future__ import annotations

import json
import threading
from decimal import Decimal, InvalidOperation

from .config import DEFAULT_DEDUP_WINDOW_MS
from .logging_setup import get_logger
from .models import DedupState, ParsedTransaction
from .store import KeyValueStore, StorageError

_logger = get_logger("spendwatch.dedup")

STATE_KEY = "dedup:last_seen"


def _decode_state(raw: str | None) -> DedupState:
    if raw is None or not raw.strip():
        return DedupState()
    try:
        data = json.loads(raw)
        return DedupState(last_amount=Decimal(data["amount"]), last_timestamp=int(data["timestamp"]))
    except (json.JSONDecodeError, KeyError, TypeError, InvalidOperation, ValueError):
        _logger.warning("dedup:state_corrupt raw=%r; starting empty", raw)
        return DedupState()


def _encode_state(state: DedupState) -> str:
    return json.dumps({"amount": str(state.last_amount), "timestamp": state.last_timestamp})


class DeduplicationGate:
    def __init__(self, store: KeyValueStore, *, window_ms: int = DEFAULT_DEDUP_WINDOW_MS) -> None:
        self._store = store
        self.window_ms = window_ms
        # Last state this gate read or wrote; used only when the store fails
        self._last_seen = DedupState()
        self._lock = threading.Lock()

    @property
    def state(self) -> DedupState:
        try:
            return _decode_state(self._store.get(STATE_KEY))
        except StorageError:
            with self._lock:
                return self._last_seen

    def _matches(self, state: DedupState, candidate: ParsedTransaction) -> bool:
        return (
            state.last_amount is not None
            and state.last_timestamp is not None
            and candidate.amount == state.last_amount
            and abs(candidate.timestamp - state.last_timestamp) < self.window_ms
        )

    def is_duplicate(self, candidate: ParsedTransaction) -> bool:
        """Return ``True`` to suppress ``candidate``; otherwise remember it.

        A candidate is accepted even when its state cannot be persisted;
        an unreadable history only risks one duplicate.
        """

        accepted = DedupState(last_amount=candidate.amount, last_timestamp=candidate.timestamp)
        verdict: bool | None = None

        def _check(raw: str | None) -> str | None:
            nonlocal verdict
            verdict = self._matches(_decode_state(raw), candidate)
            return None if verdict else _encode_state(accepted)

        with self._lock:
            try:
                self._store.update(STATE_KEY, _check)
            except StorageError:
                if verdict is None:
                    _logger.warning("dedup:state_unreadable; using in-process state")
                    verdict = self._matches(self._last_seen, candidate)
                else:
                    _logger.error(
                        "dedup:persist_failed amount=%s timestamp=%s",
                        candidate.amount,
                        candidate.timestamp,
                    )
            if verdict:
                _logger.debug("dedup:duplicate amount=%s", candidate.amount)
                return True
            self._last_seen = accepted
            return False


__all__ = ["STATE_KEY", "DeduplicationGate"]
