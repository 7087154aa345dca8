import pytest

from spendwatch.merchants import MerchantExtractor, clean_merchant


@pytest.fixture
def extractor() -> MerchantExtractor:
    return MerchantExtractor()


def test_connector_run_stops_at_next_connector(extractor):
    text = "HDFC Bank: Rs. 1,500.00 debited from your account at Swiggy on 12-01-24"
    assert extractor.extract(text) == "Swiggy"


def test_connector_run_stops_at_reference(extractor):
    assert extractor.extract("Rs 250 paid to Ravi Kumar Ref 12345") == "Ravi Kumar"


def test_connector_cleanup_drops_punctuation(extractor):
    assert extractor.extract("Rs 300 spent at McDonald's (Mall)") == "McDonalds Mall"


def test_connector_capture_truncated_to_30_chars(extractor):
    text = "Rs 10 spent at ABCDEFGHIJKLMNOPQRSTUVWXYZ ABCDEFGHIJ"
    out = extractor.extract(text)
    assert out == "ABCDEFGHIJKLMNOPQRSTUVWXYZ ABC"
    assert len(out) == 30


def test_short_connector_capture_is_rejected(extractor):
    assert extractor.extract("Rs 10 paid at XY") == "Unknown"


def test_jargon_after_connector_falls_through(extractor):
    # "via UPI" is not a counterparty; the capitalized-phrase tier finds the name.
    assert extractor.extract("You have received Rs 2000 via UPI from Amit") == "Amit"


def test_known_brand_is_title_cased(extractor):
    assert extractor.extract("INR 50 debited PHONEPE txn") == "Phonepe"
    assert extractor.extract("Rs 199 debited, Netflix renewal") == "Netflix"


def test_capitalized_two_word_phrase(extractor):
    assert extractor.extract("Rs 120 debited Blue Tokai Coffee") == "Blue Tokai"


def test_capitalized_jargon_is_ignored(extractor):
    assert extractor.extract("Rs 75 debited via NEFT.") == "Unknown"


def test_capitalized_word_at_start_is_sender_not_merchant(extractor):
    assert extractor.extract("A Zeta sent Rs 20") == "Unknown"


def test_start_offset_is_tunable():
    assert MerchantExtractor(start_offset=1).extract("A Zeta sent Rs 20") == "Zeta"


def test_no_signal_returns_sentinel(extractor):
    assert extractor.extract("rs 20 debited") == "Unknown"


def test_clean_merchant():
    assert clean_merchant("  Cafe   Coffee-Day!  ") == "Cafe CoffeeDay"
    assert clean_merchant("Swiggy.") == "Swiggy"
