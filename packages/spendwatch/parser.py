"""Text-to-transaction parsing entry point.

``SmsTransactionParser.parse`` turns one notification string into a
:class:`~spendwatch.models.ParsedTransaction` or ``None``. It is an early-return
chain over the classifier and the two extractors; an unexpected error inside a
stage is logged and treated as "no match" for that message.
"""

from __future__ import annotations

import hashlib
import json
import uuid
from collections.abc import Callable
from decimal import Decimal

from .amounts import AmountExtractor
from .classifier import TransactionClassifier
from .logging_setup import get_logger
from .merchants import MerchantExtractor
from .models import Direction, ParsedTransaction, now_ms

_logger = get_logger("spendwatch.parser")


def derive_transaction_id(*, timestamp: int, amount: Decimal, merchant: str) -> str:
    """Stable SHA-256 fingerprint over ``timestamp``, ``amount`` and ``merchant``.

    Re-ingesting the same detection yields the same id, so the merge step
    collapses it instead of creating a second ledger row.
    """

    payload = {
        "timestamp": int(timestamp),
        "amount": f"{amount:.2f}",
        "merchant": merchant.strip(),
    }
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


class SmsTransactionParser:
    def __init__(
        self,
        *,
        classifier: TransactionClassifier | None = None,
        amounts: AmountExtractor | None = None,
        merchants: MerchantExtractor | None = None,
        clock: Callable[[], int] = now_ms,
        deterministic_ids: bool = False,
    ) -> None:
        self.classifier = classifier or TransactionClassifier()
        self.amounts = amounts or AmountExtractor()
        self.merchants = merchants or MerchantExtractor()
        self._clock = clock
        self._deterministic_ids = deterministic_ids

    def parse(self, raw_text: str) -> ParsedTransaction | None:
        try:
            return self._parse(raw_text)
        except Exception:  # noqa: BLE001
            # A malformed message must never take the listener down.
            _logger.debug("parse:failed text_len=%d", len(raw_text or ""), exc_info=True)
            return None

    def _parse(self, raw_text: str) -> ParsedTransaction | None:
        if not raw_text or not self.classifier.looks_like_transaction(raw_text):
            _logger.debug("parse:no_trigger")
            return None

        direction = self.classifier.classify(raw_text)
        tx_type = direction.to_type()
        if direction is Direction.UNKNOWN or tx_type is None:
            _logger.debug("parse:unknown_direction")
            return None

        amount = self.amounts.extract(raw_text)
        if amount is None or amount == 0:
            _logger.debug("parse:no_amount")
            return None

        merchant = self.merchants.extract(raw_text)
        timestamp = self._clock()
        if self._deterministic_ids:
            tx_id = derive_transaction_id(timestamp=timestamp, amount=amount, merchant=merchant)
        else:
            tx_id = str(uuid.uuid4())

        return ParsedTransaction(
            id=tx_id,
            amount=amount,
            merchant=merchant,
            type=tx_type,
            timestamp=timestamp,
            note=None,
        )


__all__ = ["SmsTransactionParser", "derive_transaction_id"]
