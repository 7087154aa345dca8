"""Counterparty (merchant) extraction.

Strategies are tried in order and the first hit wins:

1. connector phrases ("at Swiggy", "to Ravi Kumar"): the run of allowed
   characters after a connector word, cut at the next stop word;
2. known brands, by case-insensitive substring;
3. a capitalized one- or two-word phrase that is not banking jargon and does
   not sit at the very start of the text (where the sender/bank name lives);
4. the ``"Unknown"`` sentinel.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .logging_setup import get_logger
from .models import UNKNOWN_MERCHANT
from .vocabulary import BANKING_JARGON, CONNECTOR_WORDS, KNOWN_BRANDS, MERCHANT_STOP_WORDS

_logger = get_logger("spendwatch.merchants")

MAX_MERCHANT_LEN = 30

_RUN_CHARS = r"[A-Za-z0-9 &_.\-()/']"
_CLEAN_RE = re.compile(r"[^A-Za-z0-9 &.]")
_CAPITALIZED_RE = re.compile(
    r"[A-Z][a-zA-Z0-9&._\-]{2,}(?:\s+[A-Z][a-zA-Z0-9&._\-]{2,})?"
)
_TOKEN_PUNCT = ".:-()/'&_"


def _connector_pattern(word: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(word)}\s+({_RUN_CHARS}{{2,60}})", re.IGNORECASE)


def _cut_at_stop_word(run: str) -> str:
    kept: list[str] = []
    for tok in run.split():
        if tok.strip(_TOKEN_PUNCT).lower() in MERCHANT_STOP_WORDS:
            break
        kept.append(tok)
    return " ".join(kept)


def _is_jargon(candidate: str) -> bool:
    return candidate.strip().upper() in BANKING_JARGON


def clean_merchant(raw: str) -> str:
    """Keep letters, digits, spaces, ``&`` and ``.``; cap at 30 characters."""

    s = _CLEAN_RE.sub("", raw.strip())
    s = " ".join(s.split())[:MAX_MERCHANT_LEN]
    return s.strip().rstrip(".").strip()


class MerchantExtractor:
    """Heuristic merchant finder.

    ``start_offset`` is the tier-3 exclusion zone: a capitalized candidate must
    start at an index greater than this to count.
    """

    def __init__(
        self,
        *,
        connectors: Iterable[str] = CONNECTOR_WORDS,
        brands: Iterable[str] = KNOWN_BRANDS,
        start_offset: int = 5,
    ) -> None:
        self._connector_patterns = [_connector_pattern(w) for w in connectors]
        self._brands = tuple(b.lower() for b in brands)
        self.start_offset = start_offset

    def extract(self, text: str) -> str:
        for strategy in (self.from_connectors, self.from_brands, self.from_capitalized):
            found = strategy(text)
            if found:
                _logger.debug("merchant:matched strategy=%s merchant=%r", strategy.__name__, found)
                return found
        return UNKNOWN_MERCHANT

    def from_connectors(self, text: str) -> str | None:
        for pat in self._connector_patterns:
            for m in pat.finditer(text):
                clean = clean_merchant(_cut_at_stop_word(m.group(1)))
                if len(clean) <= 2 or _is_jargon(clean):
                    continue
                # Dates and reference numbers are not names
                if not any(c.isalpha() for c in clean):
                    continue
                return clean
        return None

    def from_brands(self, text: str) -> str | None:
        lower = text.lower()
        for brand in self._brands:
            if brand in lower:
                return brand[:1].upper() + brand[1:]
        return None

    def from_capitalized(self, text: str) -> str | None:
        for m in _CAPITALIZED_RE.finditer(text):
            candidate = m.group(0).rstrip("._-")
            if _is_jargon(candidate):
                continue
            if m.start() <= self.start_offset:
                continue
            return candidate[:MAX_MERCHANT_LEN].strip()
        return None


__all__ = ["MAX_MERCHANT_LEN", "MerchantExtractor", "clean_merchant"]
