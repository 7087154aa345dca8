import pytest

from spendwatch.notifications import (
    NotificationEvent,
    NotificationFilter,
    NotificationFlags,
    compose_message_text,
)

GOOGLE_MESSAGES = "com.google.android.apps.messaging"


def test_ongoing_notifications_are_rejected_even_from_default_app():
    f = NotificationFilter(default_app_resolver=lambda: GOOGLE_MESSAGES)
    assert not f.should_process(GOOGLE_MESSAGES, NotificationFlags(ongoing=True))


def test_default_messaging_app_is_accepted():
    f = NotificationFilter(default_app_resolver=lambda: "com.vendor.sms")
    assert f.should_process("com.vendor.sms", NotificationFlags())


def test_allowlist_used_when_default_unknown():
    f = NotificationFilter()
    assert f.should_process("com.samsung.android.messaging", NotificationFlags())
    assert not f.should_process("com.whatsapp", NotificationFlags())


def test_allowlist_still_applies_when_default_differs():
    f = NotificationFilter(default_app_resolver=lambda: "com.vendor.sms")
    assert f.should_process(GOOGLE_MESSAGES, NotificationFlags())
    assert not f.should_process("com.instagram.android", NotificationFlags())


def test_failing_default_resolver_falls_back_to_allowlist():
    def _boom() -> str | None:
        raise RuntimeError("no telephony")

    f = NotificationFilter(default_app_resolver=_boom)
    assert f.should_process("com.android.mms", NotificationFlags())


@pytest.mark.parametrize(
    ("event", "expected"),
    [
        (
            NotificationEvent(
                source_app_id=GOOGLE_MESSAGES,
                title="HDFC Bank",
                text="Rs 500 debited",
                big_text="Rs 500 debited at Swiggy\non 12-01",
            ),
            "HDFC Bank Rs 500 debited at Swiggy on 12-01",
        ),
        (
            NotificationEvent(source_app_id=GOOGLE_MESSAGES, title="AX-ICICI", sub_text="  Rs 20  spent "),
            "AX-ICICI Rs 20 spent",
        ),
        (
            NotificationEvent(
                source_app_id=GOOGLE_MESSAGES,
                title="Bank",
                text="2 new messages",
                text_lines=("Rs 10 paid", "", "Rs 20 paid"),
            ),
            "Bank 2 new messages Rs 10 paid Rs 20 paid",
        ),
        (NotificationEvent(source_app_id=GOOGLE_MESSAGES), ""),
    ],
)
def test_compose_message_text(event, expected):
    assert compose_message_text(event) == expected
