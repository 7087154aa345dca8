"""Monetary amount extraction from free-form notification text.

Two notations are recognized and the leftmost match in the text wins:

- prefix: a currency marker, optional ``:``/``-``/``.`` separator, then the
  numeral (``"Rs. 1,234.50"``, ``"INR 500"``, ``"₹42"``);
- suffix: the numeral followed by an optional separator and a currency
  marker, or by the ``/-`` literal (``"1000 rs"``, ``"500/-"``).

Numerals may group thousands with commas and carry one or two decimal
digits. The result is a :class:`~decimal.Decimal`; ``None`` means no amount.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from .logging_setup import get_logger
from .vocabulary import CURRENCY_MARKERS, RUPEE_SUFFIX

_logger = get_logger("spendwatch.amounts")

_NUMBER = r"\d+(?:,\d+)*(?:\.\d{1,2})?"
_MARKER = "(?:" + "|".join(CURRENCY_MARKERS) + ")"
_SEP = r"[:\-.]?"


def _build_pattern() -> re.Pattern[str]:
    # Markers must not be glued to a preceding letter ("hrs 5") and suffix
    # markers must not run into a following letter ("5 rsvp").
    prefix = rf"(?<![A-Za-z]){_MARKER}\s*{_SEP}\s*(?P<prefix>{_NUMBER})"
    suffix = (
        rf"(?P<suffix>{_NUMBER})"
        rf"(?:\s?{re.escape(RUPEE_SUFFIX)}|\s*{_SEP}\s*{_MARKER}(?![A-Za-z]))"
    )
    return re.compile(rf"{prefix}|{suffix}", re.IGNORECASE)


AMOUNT_PATTERN: re.Pattern[str] = _build_pattern()


def normalize_amount(raw: str) -> Decimal | None:
    """Parse a matched numeral into a ``Decimal``.

    Thousands separators, currency tokens, the ``/-`` suffix and whitespace are
    stripped first. Returns ``None`` when the remainder is not a number.
    """

    s = raw.replace(",", "").replace(RUPEE_SUFFIX, "")
    s = re.sub(_MARKER, "", s, flags=re.IGNORECASE)
    s = "".join(s.split())
    if not s:
        return None
    try:
        value = Decimal(s)
    except InvalidOperation:
        return None
    if not value.is_finite() or value < 0:
        return None
    return value


class AmountExtractor:
    """Find the first amount in a message.

    Usage
    -----
    AmountExtractor().extract("Rs. 1,234.50 debited")  # -> Decimal("1234.50")
    """

    def __init__(self, pattern: re.Pattern[str] = AMOUNT_PATTERN) -> None:
        self._pattern = pattern

    def extract(self, text: str) -> Decimal | None:
        for m in self._pattern.finditer(text):
            raw = m.group("prefix") or m.group("suffix")
            if not raw:
                continue
            value = normalize_amount(raw)
            if value is None:
                _logger.debug("amount:malformed raw=%r", raw)
                continue
            return value
        return None


__all__ = ["AMOUNT_PATTERN", "AmountExtractor", "normalize_amount"]
