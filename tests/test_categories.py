import pytest

from spendwatch.categories import (
    CATEGORIES,
    ledger_category,
    resolve_category,
    validate_category,
)


def test_vocabulary_is_fixed_and_ordered():
    assert CATEGORIES == ("food", "transport", "bills", "shopping", "entertainment", "other")


@pytest.mark.parametrize(
    ("raw", "code"),
    [("food", "food"), ("  FOOD ", "food"), ("Fun", "entertainment"), ("other", "other")],
)
def test_resolve_category_accepts_codes_and_labels(raw, code):
    assert resolve_category(raw) == code


@pytest.mark.parametrize("raw", ["", "   ", "groceries", "uncategorized"])
def test_resolve_category_rejects_unknown(raw):
    with pytest.raises(ValueError):
        resolve_category(raw)


def test_uncategorized_only_valid_when_allowed():
    assert not validate_category("uncategorized").ok
    assert validate_category("uncategorized", allow_uncategorized=True).ok


@pytest.mark.parametrize(
    ("queued", "expected"),
    [("uncategorized", "other"), ("", "other"), (None, "other"), ("Food", "food")],
)
def test_ledger_category(queued, expected):
    assert ledger_category(queued) == expected
