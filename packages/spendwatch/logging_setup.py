"""Logging for the ``spendwatch`` package.

Modules log through ``get_logger("spendwatch.<module>")`` with short
``area:event key=value`` messages and never install handlers themselves.
Without configuration the package stays silent (a ``NullHandler`` sits on the
``spendwatch`` logger); an entrypoint such as the CLI calls
``configure_logging`` once to route records to a stream.

Environment
-----------
``SPENDWATCH_LOG_LEVEL``
    Level name or number used when ``configure_logging`` gets no explicit
    level. Unknown names fall back to ``INFO``.
``SPENDWATCH_LOG_FORMAT``
    Format string used when no explicit ``fmt`` is given.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

ROOT_LOGGER = "spendwatch"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# Tag carried by the one handler configure_logging installs
_OWNED_ATTR = "_spendwatch_owned"


def resolve_level(value: int | str | None) -> int:
    """Turn ``value`` (or ``$SPENDWATCH_LOG_LEVEL`` when ``None``) into a level number."""

    if value is None:
        value = os.getenv("SPENDWATCH_LOG_LEVEL") or logging.INFO
    if isinstance(value, int):
        return value
    text = value.strip().upper()
    if text.isdigit():
        return int(text)
    return logging.getLevelNamesMapping().get(text, logging.INFO)


def _owned_handler(logger: logging.Logger) -> logging.Handler | None:
    for h in logger.handlers:
        if getattr(h, _OWNED_ATTR, False):
            return h
    return None


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Send ``spendwatch`` records to ``stream`` (stderr by default).

    Calling it again is a no-op while the installed handler is in place.
    Records stop propagating to the root logger so a host that also logs
    does not print them twice.
    """

    logger = logging.getLogger(ROOT_LOGGER)
    if _owned_handler(logger) is not None:
        return logger

    for h in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
        logger.removeHandler(h)

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(
        logging.Formatter(fmt or os.getenv("SPENDWATCH_LOG_FORMAT") or DEFAULT_FORMAT)
    )
    setattr(handler, _OWNED_ATTR, True)

    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["ROOT_LOGGER", "DEFAULT_FORMAT", "resolve_level", "configure_logging", "get_logger"]
