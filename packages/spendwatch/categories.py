"""Category vocabulary and validation helpers.

The ledger uses a small fixed set of categories. Queue entries start as
``uncategorized`` until the user picks one; an entry still untouched at sync
time lands in the ledger as ``other``.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import UNCATEGORIZED

FALLBACK_CATEGORY = "other"

# code -> display label, in presentation order
CATEGORY_LABELS: dict[str, str] = {
    "food": "Food",
    "transport": "Transport",
    "bills": "Bills",
    "shopping": "Shopping",
    "entertainment": "Fun",
    FALLBACK_CATEGORY: "Other",
}

CATEGORIES: tuple[str, ...] = tuple(CATEGORY_LABELS)


def normalize_category(name: str) -> str:
    """Trim, collapse whitespace and lower-case ``name``."""

    return " ".join(name.strip().split()).lower()


@dataclass(frozen=True, slots=True)
class CategoryValidation:
    ok: bool
    reason: str | None = None


def validate_category(name: str, *, allow_uncategorized: bool = False) -> CategoryValidation:
    """Check ``name`` against the vocabulary (codes or display labels, any case)."""

    n = normalize_category(name)
    if not n:
        return CategoryValidation(False, "Category cannot be empty")
    if n in CATEGORY_LABELS:
        return CategoryValidation(True, None)
    if any(label.lower() == n for label in CATEGORY_LABELS.values()):
        return CategoryValidation(True, None)
    if allow_uncategorized and n == UNCATEGORIZED:
        return CategoryValidation(True, None)
    return CategoryValidation(False, f"Unknown category {name!r}. Allowed: {', '.join(CATEGORIES)}")


def resolve_category(name: str) -> str:
    """Return the category code for a code or display label; raise ``ValueError`` otherwise."""

    check = validate_category(name)
    if not check.ok:
        raise ValueError(check.reason)
    n = normalize_category(name)
    if n in CATEGORY_LABELS:
        return n
    for code, label in CATEGORY_LABELS.items():
        if label.lower() == n:
            return code
    raise ValueError(f"Unknown category {name!r}")  # pragma: no cover - guarded above


def ledger_category(queued_category: str | None) -> str:
    """Category a queued entry carries into the ledger."""

    n = normalize_category(queued_category or "")
    if not n or n == UNCATEGORIZED:
        return FALLBACK_CATEGORY
    return n


__all__ = [
    "FALLBACK_CATEGORY",
    "CATEGORY_LABELS",
    "CATEGORIES",
    "normalize_category",
    "CategoryValidation",
    "validate_category",
    "resolve_category",
    "ledger_category",
]
