"""Runtime settings resolved from the environment.

The CLI loads a local ``.env`` (non-overriding) before calling
``Settings.from_env()``; library callers may construct ``Settings`` directly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .logging_setup import get_logger

_logger = get_logger("spendwatch.config")

DEFAULT_DEDUP_WINDOW_MS = 5000
DEFAULT_MERCHANT_START_OFFSET = 5

_TRUTHY = {"1", "true", "yes", "on"}


def _default_database_url() -> str:
    # Same convention as the cache root: project-relative under the CWD
    root = (Path.cwd() / ".spendwatch").resolve()
    root.mkdir(parents=True, exist_ok=True)
    path = root / "spendwatch.db"
    return f"sqlite+pysqlite:///{path}"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        _logger.warning("config:invalid_int name=%s value=%r; using %d", name, raw, default)
        return default
    if value < 0:
        _logger.warning("config:negative_int name=%s value=%d; using %d", name, value, default)
        return default
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved configuration for the ingestion pipeline and stores."""

    database_url: str
    dedup_window_ms: int = DEFAULT_DEDUP_WINDOW_MS
    merchant_start_offset: int = DEFAULT_MERCHANT_START_OFFSET
    default_sms_app: str | None = None
    deterministic_ids: bool = False

    @classmethod
    def from_env(cls, *, database_url: str | None = None) -> Settings:
        url = (
            database_url
            or os.getenv("SPENDWATCH_DATABASE_URL")
            or os.getenv("DATABASE_URL")
            or _default_database_url()
        )
        default_app = (os.getenv("SPENDWATCH_DEFAULT_SMS_APP") or "").strip() or None
        deterministic = (os.getenv("SPENDWATCH_DETERMINISTIC_IDS") or "").strip().lower()
        return cls(
            database_url=url,
            dedup_window_ms=_int_env("SPENDWATCH_DEDUP_WINDOW_MS", DEFAULT_DEDUP_WINDOW_MS),
            merchant_start_offset=_int_env(
                "SPENDWATCH_MERCHANT_START_OFFSET", DEFAULT_MERCHANT_START_OFFSET
            ),
            default_sms_app=default_app,
            deterministic_ids=deterministic in _TRUTHY,
        )


__all__ = ["Settings", "DEFAULT_DEDUP_WINDOW_MS", "DEFAULT_MERCHANT_START_OFFSET"]
