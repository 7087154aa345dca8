"""Public interface for the ``spendwatch`` package.

Passive spending capture: notification text is parsed into transactions,
deduplicated, staged in a durable queue and merged into the ledger. This
module only re-exports the stable import surface.
"""

from .amounts import AmountExtractor
from .classifier import TransactionClassifier
from .config import Settings
from .dedup import DeduplicationGate
from .ledger import LedgerRepository, LedgerSync, SyncResult, TransactionMerger, to_ledger
from .merchants import MerchantExtractor
from .models import (
    DedupState,
    Direction,
    LedgerTransaction,
    ParsedTransaction,
    QueuedTransaction,
    TransactionType,
)
from .notifications import (
    NotificationEvent,
    NotificationFilter,
    NotificationFlags,
    compose_message_text,
)
from .parser import SmsTransactionParser, derive_transaction_id
from .pending import PendingTransactionQueue
from .pipeline import IngestionPipeline
from .store import KeyValueStore, MemoryKeyValueStore, SqlKeyValueStore, StorageError

__all__ = [
    # Parsing
    "AmountExtractor",
    "MerchantExtractor",
    "TransactionClassifier",
    "SmsTransactionParser",
    "derive_transaction_id",
    # Ingestion
    "NotificationEvent",
    "NotificationFlags",
    "NotificationFilter",
    "compose_message_text",
    "DeduplicationGate",
    "PendingTransactionQueue",
    "IngestionPipeline",
    # Ledger
    "TransactionMerger",
    "LedgerRepository",
    "LedgerSync",
    "SyncResult",
    "to_ledger",
    # Storage / config
    "KeyValueStore",
    "SqlKeyValueStore",
    "MemoryKeyValueStore",
    "StorageError",
    "Settings",
    # Models / types
    "ParsedTransaction",
    "QueuedTransaction",
    "LedgerTransaction",
    "DedupState",
    "Direction",
    "TransactionType",
]
