"""Data models for ``spendwatch``.

Three transaction shapes move through the system:

- :class:`ParsedTransaction`: immutable parser output, created once per
  accepted notification.
- :class:`QueuedTransaction`: the on-disk pending-queue entry (a parsed
  transaction plus a user disposition: category and note).
- :class:`LedgerTransaction`: the long-lived, user-visible ledger record.

The two persisted shapes are Pydantic models so that JSON read back from the
durable store is validated before it reaches the merge step. Amounts serialize
as JSON numbers and timestamps as integer milliseconds since the epoch.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator

UNKNOWN_MERCHANT = "Unknown"
UNCATEGORIZED = "uncategorized"
QUEUE_NOTE_PLACEHOLDER = "Auto-detected"


def now_ms() -> int:
    """Current wall-clock time in integer milliseconds since the epoch."""

    return time.time_ns() // 1_000_000


class TransactionType(StrEnum):
    EXPENSE = "expense"
    INCOME = "income"


class Direction(StrEnum):
    """Classifier verdict for a message."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"
    UNKNOWN = "UNKNOWN"

    def to_type(self) -> TransactionType | None:
        if self is Direction.DEBIT:
            return TransactionType.EXPENSE
        if self is Direction.CREDIT:
            return TransactionType.INCOME
        return None


@dataclass(frozen=True, slots=True)
class ParsedTransaction:
    """A transaction extracted from a single notification.

    Attributes
    ----------
    id:
        Unique identifier (random UUID, or a fingerprint when ids are derived).
    amount:
        Positive decimal amount in the local currency.
    merchant:
        Counterparty label, at most 30 characters; ``"Unknown"`` when no
        heuristic matched.
    type:
        ``expense`` or ``income``.
    timestamp:
        Detection time in epoch milliseconds. The message's own date is not
        used.
    note:
        Always ``None`` from the parser so raw message text never lands in
        stored notes.
    """

    id: str
    amount: Decimal
    merchant: str
    type: TransactionType
    timestamp: int
    note: str | None = None

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError("ParsedTransaction.amount must be positive")
        if not self.merchant:
            raise ValueError("ParsedTransaction.merchant must be non-empty")


@dataclass(frozen=True, slots=True)
class DedupState:
    """Last accepted detection remembered by the deduplication gate."""

    last_amount: Decimal | None = None
    last_timestamp: int | None = None


# ---------------------------------------------------------------------------
# Persisted shapes
# ---------------------------------------------------------------------------


class _StoredTransaction(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    id: str
    amount: Decimal
    type: TransactionType
    timestamp: int
    note: str | None = None

    @field_validator("id")
    @classmethod
    def _id_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("id must be non-empty")
        return v

    @field_validator("amount")
    @classmethod
    def _amount_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("amount must be positive")
        return v

    @field_serializer("amount")
    def _amount_as_number(self, v: Decimal) -> float | int:
        # JSON numbers, not strings; integral amounts stay integers
        if v == v.to_integral_value():
            return int(v)
        return float(v)


class QueuedTransaction(_StoredTransaction):
    """A parsed transaction waiting in the pending queue."""

    merchant: str = UNKNOWN_MERCHANT
    category: str = UNCATEGORIZED

    @classmethod
    def from_parsed(cls, txn: ParsedTransaction) -> QueuedTransaction:
        return cls(
            id=txn.id,
            amount=txn.amount,
            type=txn.type,
            timestamp=txn.timestamp,
            merchant=txn.merchant,
            category=UNCATEGORIZED,
            note=txn.note or QUEUE_NOTE_PLACEHOLDER,
        )


class LedgerTransaction(_StoredTransaction):
    """A record in the user's ledger.

    ``merchant`` is optional because manual entries bypass the parser.
    """

    category: str
    merchant: str | None = None


__all__ = [
    "UNKNOWN_MERCHANT",
    "UNCATEGORIZED",
    "QUEUE_NOTE_PLACEHOLDER",
    "now_ms",
    "TransactionType",
    "Direction",
    "ParsedTransaction",
    "DedupState",
    "QueuedTransaction",
    "LedgerTransaction",
]
