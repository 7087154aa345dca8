"""Trigger detection and debit/credit classification."""

from __future__ import annotations

from collections.abc import Iterable

from .models import Direction
from .vocabulary import CREDIT_WORDS, DEBIT_WORDS, TRIGGER_WORDS


def _contains_any(lower: str, words: Iterable[str]) -> bool:
    return any(w in lower for w in words)


class TransactionClassifier:
    """Lower-cased substring matching against the trigger/debit/credit tables.

    Debit words are checked first, so a message such as "debited ... received"
    classifies as :attr:`Direction.DEBIT`.
    """

    def __init__(
        self,
        *,
        triggers: Iterable[str] = TRIGGER_WORDS,
        debit_words: Iterable[str] = DEBIT_WORDS,
        credit_words: Iterable[str] = CREDIT_WORDS,
    ) -> None:
        self._triggers = tuple(triggers)
        self._debit = tuple(debit_words)
        self._credit = tuple(credit_words)

    def looks_like_transaction(self, text: str) -> bool:
        return _contains_any(text.lower(), self._triggers)

    def classify(self, text: str) -> Direction:
        lower = text.lower()
        if _contains_any(lower, self._debit):
            return Direction.DEBIT
        if _contains_any(lower, self._credit):
            return Direction.CREDIT
        return Direction.UNKNOWN


__all__ = ["TransactionClassifier"]
