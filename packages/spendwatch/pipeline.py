"""Notification ingestion: filter -> compose -> parse -> dedup -> enqueue.

``IngestionPipeline.handle`` is what the host's notification listener calls
once per posted notification. It never raises: every failure mode drops the
one message and leaves a distinct log line behind.
"""

from __future__ import annotations

from collections.abc import Callable

from .config import Settings
from .dedup import DeduplicationGate
from .logging_setup import get_logger
from .merchants import MerchantExtractor
from .models import ParsedTransaction, now_ms
from .notifications import NotificationEvent, NotificationFilter, compose_message_text
from .parser import SmsTransactionParser
from .pending import PendingTransactionQueue
from .store import KeyValueStore

_logger = get_logger("spendwatch.pipeline")


class IngestionPipeline:
    def __init__(
        self,
        *,
        notification_filter: NotificationFilter,
        parser: SmsTransactionParser,
        gate: DeduplicationGate,
        queue: PendingTransactionQueue,
    ) -> None:
        self.notification_filter = notification_filter
        self.parser = parser
        self.gate = gate
        self.queue = queue

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: KeyValueStore,
        *,
        clock: Callable[[], int] = now_ms,
        default_app_resolver: Callable[[], str | None] | None = None,
    ) -> IngestionPipeline:
        """Wire the default components from ``settings`` over one ``store``."""

        if default_app_resolver is None:
            default_app = settings.default_sms_app

            def default_app_resolver() -> str | None:
                return default_app

        return cls(
            notification_filter=NotificationFilter(default_app_resolver=default_app_resolver),
            parser=SmsTransactionParser(
                merchants=MerchantExtractor(start_offset=settings.merchant_start_offset),
                clock=clock,
                deterministic_ids=settings.deterministic_ids,
            ),
            gate=DeduplicationGate(store, window_ms=settings.dedup_window_ms),
            queue=PendingTransactionQueue(store),
        )

    def handle(self, event: NotificationEvent) -> ParsedTransaction | None:
        """Process one event; return the queued transaction or ``None`` when dropped."""

        try:
            return self._handle(event)
        except Exception:  # noqa: BLE001
            _logger.error("ingest:failed app=%s", event.source_app_id, exc_info=True)
            return None

    def _handle(self, event: NotificationEvent) -> ParsedTransaction | None:
        if not self.notification_filter.should_process(event.source_app_id, event.flags):
            _logger.debug("ingest:filtered app=%s", event.source_app_id)
            return None

        text = compose_message_text(event)
        if not text:
            _logger.debug("ingest:empty app=%s", event.source_app_id)
            return None

        txn = self.parser.parse(text)
        if txn is None:
            _logger.debug("ingest:no_match app=%s", event.source_app_id)
            return None

        if self.gate.is_duplicate(txn):
            _logger.debug("ingest:duplicate amount=%s", txn.amount)
            return None

        if not self.queue.append(txn):
            _logger.error("ingest:append_failed id=%s amount=%s", txn.id, txn.amount)
            return None

        _logger.info(
            "ingest:captured id=%s type=%s amount=%s merchant=%s",
            txn.id,
            txn.type,
            txn.amount,
            txn.merchant,
        )
        return txn


__all__ = ["IngestionPipeline"]
