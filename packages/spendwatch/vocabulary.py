"""Lexical tables used by the classifier, extractors and notification filter.

Kept as plain data so the lists can be tested and extended without touching
the matching code. Order matters where noted: extractors walk these tuples
front to back and stop at the first hit.
"""

from __future__ import annotations

# A message must contain at least one of these (lower-cased substring match)
# to be considered a transaction candidate at all.
TRIGGER_WORDS: tuple[str, ...] = (
    "debited",
    "credited",
    "spent",
    "paid",
    "received",
    "deposited",
    "sent",
    "transferred",
    "txn",
    "purchase",
    "payment",
    "withdrawn",
)

# Checked before CREDIT_WORDS; a message matching both is a debit.
DEBIT_WORDS: tuple[str, ...] = ("debited", "spent", "paid", "sent", "transferred")

CREDIT_WORDS: tuple[str, ...] = ("credited", "received", "deposited")

# Currency markers accepted in amount notation, in regex-ready form.
# "Rs." must precede "Rs" so the dot is consumed as part of the marker.
CURRENCY_MARKERS: tuple[str, ...] = ("₹", "INR", r"Rs\.", "Rs")

# Suffix literal meaning "rupees only" on bank slips, e.g. "500/-".
RUPEE_SUFFIX = "/-"

# Connector words that introduce a counterparty, tried in this order.
CONNECTOR_WORDS: tuple[str, ...] = ("at", "to", "via", "by", "for", "on")

# A connector's captured run ends before the first of these words, so
# "at Swiggy on 12-01-24" yields "Swiggy".
MERCHANT_STOP_WORDS: frozenset[str] = frozenset(
    set(CONNECTOR_WORDS) | {"from", "with", "using", "ref", "avl", "bal", "if"}
)

# Known payment apps and merchants, matched case-insensitively as substrings.
KNOWN_BRANDS: tuple[str, ...] = (
    "gpay",
    "phonepe",
    "paytm",
    "swiggy",
    "zomato",
    "amazon",
    "flipkart",
    "uber",
    "ola",
    "truecaller",
    "netflix",
    "spotify",
    "apple",
    "google",
)

# Capitalized tokens that are banking jargon, never merchants.
BANKING_JARGON: frozenset[str] = frozenset(
    {
        "INR",
        "SMS",
        "NEFT",
        "IMPS",
        "UPI",
        "DEBITED",
        "CREDITED",
        "RS",
        "BAL",
        "ACCT",
        "BANK",
        "INFO",
    }
)

# Messaging apps accepted when the platform cannot report the default SMS app
# (or the event came from another common SMS client).
MESSAGING_APP_ALLOWLIST: frozenset[str] = frozenset(
    {
        "com.google.android.apps.messaging",
        "com.samsung.android.messaging",
        "com.android.mms",
        "com.android.messaging",
        "com.oneplus.mms",
        "com.miui.mms",
    }
)


__all__ = [
    "TRIGGER_WORDS",
    "DEBIT_WORDS",
    "CREDIT_WORDS",
    "CURRENCY_MARKERS",
    "RUPEE_SUFFIX",
    "CONNECTOR_WORDS",
    "MERCHANT_STOP_WORDS",
    "KNOWN_BRANDS",
    "BANKING_JARGON",
    "MESSAGING_APP_ALLOWLIST",
]
