"""Inbound notification events and the eligibility filter.

The listener sees every system notification. ``NotificationFilter`` keeps
only those posted by a messaging app, and ``compose_message_text`` flattens
the event's text fields into the single string the parser consumes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from .logging_setup import get_logger
from .vocabulary import MESSAGING_APP_ALLOWLIST

_logger = get_logger("spendwatch.notifications")


@dataclass(frozen=True, slots=True)
class NotificationFlags:
    ongoing: bool = False


@dataclass(frozen=True, slots=True)
class NotificationEvent:
    """A single posted notification as delivered by the event source.

    ``big_text``/``text``/``sub_text`` are alternative renderings of the body;
    the most complete one present is used. ``text_lines`` carries inbox-style
    multi-line content.
    """

    source_app_id: str
    title: str = ""
    text: str = ""
    big_text: str = ""
    sub_text: str = ""
    text_lines: Sequence[str] = ()
    flags: NotificationFlags = field(default_factory=NotificationFlags)


def compose_message_text(event: NotificationEvent) -> str:
    """Join title, primary body and text lines into one whitespace-normalized string."""

    body = event.big_text or event.text or event.sub_text or ""
    lines = " ".join(line for line in event.text_lines if line)
    return " ".join(" ".join([event.title or "", body, lines]).split())


class NotificationFilter:
    """Decide whether an event is worth parsing.

    Rules, first match decides:

    1. ongoing (foreground-service) notifications are rejected;
    2. the platform's default messaging app is accepted;
    3. apps in the static allowlist are accepted;
    4. everything else is rejected.

    ``default_app_resolver`` returns the default messaging app id, or ``None``
    when the platform cannot say.
    """

    def __init__(
        self,
        *,
        default_app_resolver: Callable[[], str | None] = lambda: None,
        allowlist: Iterable[str] = MESSAGING_APP_ALLOWLIST,
    ) -> None:
        self._default_app_resolver = default_app_resolver
        self._allowlist = frozenset(allowlist)

    def should_process(self, source_app_id: str, flags: NotificationFlags) -> bool:
        if flags.ongoing:
            _logger.debug("filter:ongoing app=%s", source_app_id)
            return False

        try:
            default_app = self._default_app_resolver()
        except Exception:  # noqa: BLE001
            _logger.debug("filter:default_app_unavailable", exc_info=True)
            default_app = None
        if default_app and source_app_id == default_app:
            return True

        if source_app_id in self._allowlist:
            return True

        _logger.debug("filter:not_messaging_app app=%s", source_app_id)
        return False


__all__ = [
    "NotificationFlags",
    "NotificationEvent",
    "compose_message_text",
    "NotificationFilter",
]
