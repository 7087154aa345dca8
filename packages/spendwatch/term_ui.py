"""Terminal category picker (prompt_toolkit-based).

This is the interactive categorization action: the CLI shows it for a queued
transaction and hands the chosen code to
``PendingTransactionQueue.update_disposition``. Kept apart from the queue so
it can be driven from a pipe input in tests.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggest, Suggestion
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.styles import Style
from prompt_toolkit.validation import ValidationError, Validator

from .categories import CATEGORIES, FALLBACK_CATEGORY, resolve_category, validate_category


def _best_prefix_match(words: Sequence[str], text: str) -> str | None:
    if not text:
        return None
    lower = text.lower()
    for w in words:
        wl = w.lower()
        if wl == lower:
            return None
        if wl.startswith(lower):
            return w
    return None


class _PrefixSuggest(AutoSuggest):
    def __init__(self, vocab: Sequence[str]) -> None:
        self._vocab = list(vocab)

    def get_suggestion(self, buffer, document):
        cand = _best_prefix_match(self._vocab, document.text)
        if cand is None:
            return None
        remainder = cand[len(document.text) :]
        return Suggestion(remainder) if remainder else None


class _CategoryValidator(Validator):
    def validate(self, document) -> None:
        text = document.text
        if not text.strip():
            return
        check = validate_category(text)
        if not check.ok:
            raise ValidationError(message=check.reason or "Unknown category", cursor_position=len(text))


def select_category(
    categories: Sequence[str] = CATEGORIES,
    *,
    default: str = FALLBACK_CATEGORY,
    message: str = "Category (Enter to accept): ",
    session: PromptSession | None = None,
) -> str:
    """Prompt for a category and return its code.

    The default is pre-filled; Enter accepts it. Typing a prefix shows the
    completion inline and Enter (or Tab) applies it.
    """

    words = list(categories)
    kb = KeyBindings()

    @kb.add("tab", eager=True)
    def _(event) -> None:  # pragma: no cover - integration path
        b = event.app.current_buffer
        cand = _best_prefix_match(words, b.document.text)
        if cand:
            b.insert_text(cand[len(b.document.text) :])
        elif b.complete_state is None:
            b.start_completion(select_first=True)
        else:
            b.complete_next()

    @kb.add("enter", eager=True)
    def _(event) -> None:  # pragma: no cover - integration path
        b = event.app.current_buffer
        cs = b.complete_state
        if cs is not None and cs.current_completion is not None:
            b.apply_completion(cs.current_completion)
        else:
            cand = _best_prefix_match(words, b.document.text)
            if cand:
                b.insert_text(cand[len(b.document.text) :])
        b.validate_and_handle()

    if session is None:
        sess: PromptSession = PromptSession(key_bindings=kb)
    else:
        sess = PromptSession(
            input=getattr(session, "input", None),
            output=getattr(session, "output", None),
            key_bindings=kb,
        )

    prompt_kwargs: dict[str, Any] = {
        "message": message,
        "completer": WordCompleter(words, ignore_case=True, match_middle=True),
        "default": default,
        "key_bindings": kb,
        "auto_suggest": _PrefixSuggest(words),
        "validator": _CategoryValidator(),
        "validate_while_typing": False,
        "style": Style.from_dict({"auto-suggestion": "fg:#888888"}),
    }
    result = sess.prompt(**prompt_kwargs)
    if not result.strip():
        result = default
    return resolve_category(result)


__all__ = ["select_category"]
