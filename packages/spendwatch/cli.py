# ruff: noqa: I001
"""CLI for the ``spendwatch`` package.

Typer-based console interface over the ingestion pipeline (producer side)
and the queue/ledger sync (consumer side). Settings come from the environment
after a local ``.env`` is loaded (non-overriding); ``--database-url`` on the
root command wins over both.

Command handlers (``cmd_*``) return a process exit code so they can be called
directly; the Typer wrappers translate that into ``typer.Exit``.
"""

from __future__ import annotations

import json
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from .config import Settings
from .logging_setup import configure_logging
from .models import LedgerTransaction, ParsedTransaction, QueuedTransaction, TransactionType


# ---- Small module-level helpers used by CLI commands -------------------------


def _settings(ctx: typer.Context) -> Settings:
    obj = ctx.obj if isinstance(ctx.obj, dict) else {}
    return Settings.from_env(database_url=obj.get("database_url"))


def _store(settings: Settings):
    # Local import keeps ``--help`` free of database setup
    from .store import SqlKeyValueStore

    return SqlKeyValueStore(settings.database_url)


def _parsed_json(txn: ParsedTransaction) -> str:
    return json.dumps(
        {
            "id": txn.id,
            "amount": float(txn.amount),
            "merchant": txn.merchant,
            "type": str(txn.type),
            "timestamp": txn.timestamp,
        },
        ensure_ascii=False,
    )


def _row_json(row: QueuedTransaction | LedgerTransaction) -> str:
    return json.dumps(row.model_dump(mode="json"), ensure_ascii=False)


# ---- Command handlers --------------------------------------------------------


def cmd_ingest(
    settings: Settings,
    *,
    app_id: str,
    title: str,
    text: str,
    big_text: str = "",
    lines: list[str] | None = None,
    ongoing: bool = False,
) -> int:
    """Run one notification through the pipeline; print the capture or ``ignored``."""

    from .notifications import NotificationEvent, NotificationFlags
    from .pipeline import IngestionPipeline

    pipeline = IngestionPipeline.from_settings(settings, _store(settings))
    event = NotificationEvent(
        source_app_id=app_id,
        title=title,
        text=text,
        big_text=big_text,
        text_lines=tuple(lines or ()),
        flags=NotificationFlags(ongoing=ongoing),
    )
    txn = pipeline.handle(event)
    if txn is None:
        print("ignored")
        return 0
    print(_parsed_json(txn))
    return 0


def cmd_parse(settings: Settings, text: str) -> int:
    """Parse text only (no filter, dedup or queue). Exit 1 when nothing matched."""

    from .merchants import MerchantExtractor
    from .parser import SmsTransactionParser

    parser = SmsTransactionParser(
        merchants=MerchantExtractor(start_offset=settings.merchant_start_offset),
        deterministic_ids=settings.deterministic_ids,
    )
    txn = parser.parse(text)
    if txn is None:
        print("Not a transaction.", file=sys.stderr)
        return 1
    print(_parsed_json(txn))
    return 0


def cmd_pending(settings: Settings) -> int:
    from .pending import PendingTransactionQueue

    for row in PendingTransactionQueue(_store(settings)).peek():
        print(_row_json(row))
    return 0


def cmd_categorize(
    settings: Settings, txn_id: str, category: str | None, note: str | None
) -> int:
    """Apply a disposition to a queued transaction, prompting when no category is given."""

    from .categories import resolve_category
    from .pending import PendingTransactionQueue

    queue = PendingTransactionQueue(_store(settings))
    if category is None:
        from .term_ui import select_category

        code = select_category()
    else:
        try:
            code = resolve_category(category)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    if not queue.update_disposition(txn_id, code, note):
        print(f"Transaction {txn_id} is no longer pending.", file=sys.stderr)
        return 0
    print(f"{txn_id}\t{code}")
    return 0


def cmd_sync(settings: Settings) -> int:
    from .ledger import LedgerRepository, LedgerSync
    from .pending import PendingTransactionQueue

    store = _store(settings)
    result = LedgerSync(PendingTransactionQueue(store), LedgerRepository(store)).sync()
    print(f"Synced {result.popped} transaction(s); ledger has {len(result.ledger)}.")
    return 0


def cmd_ledger(settings: Settings, limit: int | None) -> int:
    from .ledger import LedgerRepository

    rows = LedgerRepository(_store(settings)).load()
    if limit is not None:
        rows = rows[:limit]
    for row in rows:
        print(_row_json(row))
    return 0


def cmd_add(
    settings: Settings, amount: str, category: str, *, income: bool, note: str | None
) -> int:
    from .ledger import LedgerRepository
    from .store import StorageError

    try:
        value = Decimal(amount.replace(",", ""))
    except InvalidOperation:
        print(f"Error: invalid amount: {amount!r}", file=sys.stderr)
        return 1
    tx_type = TransactionType.INCOME if income else TransactionType.EXPENSE
    try:
        tx = LedgerRepository(_store(settings)).add(value, category, type=tx_type, note=note)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except StorageError as e:
        print(f"Error: storage failure: {e}", file=sys.stderr)
        return 1
    print(_row_json(tx))
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Capture spending from bank/payment notifications into a local ledger. "
        "Loads settings from a local .env before running."
    ),
)


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("ingest")
def ingest_cmd(
    ctx: typer.Context,
    app_id: Annotated[str, typer.Option("--app", help="Source app id of the notification.")],
    text: Annotated[str, typer.Option(help="Notification body text.")] = "",
    title: Annotated[str, typer.Option(help="Notification title.")] = "",
    big_text: Annotated[str, typer.Option(help="Expanded (big text) body, if any.")] = "",
    line: Annotated[
        list[str] | None, typer.Option(help="Inbox-style text line (repeatable).")
    ] = None,
    ongoing: Annotated[bool, typer.Option(help="Mark as an ongoing service notification.")] = False,
) -> None:
    """Feed one notification event through filter, parser, dedup and queue."""

    _exit(
        cmd_ingest(
            _settings(ctx),
            app_id=app_id,
            title=title,
            text=text,
            big_text=big_text,
            lines=line,
            ongoing=ongoing,
        )
    )


@app.command("parse")
def parse_cmd(ctx: typer.Context, text: Annotated[str, typer.Argument()]) -> None:
    """Parse message text and print the extracted transaction."""

    _exit(cmd_parse(_settings(ctx), text))


@app.command("pending")
def pending_cmd(ctx: typer.Context) -> None:
    """List queued transactions without consuming them."""

    _exit(cmd_pending(_settings(ctx)))


@app.command("categorize")
def categorize_cmd(
    ctx: typer.Context,
    txn_id: Annotated[str, typer.Argument(help="Queued transaction id.")],
    category: Annotated[str | None, typer.Argument(help="Category code; prompts when omitted.")] = None,
    note: Annotated[str | None, typer.Option(help="Optional note.")] = None,
) -> None:
    """Set the category (and note) of a still-queued transaction."""

    _exit(cmd_categorize(_settings(ctx), txn_id, category, note))


@app.command("sync")
def sync_cmd(ctx: typer.Context) -> None:
    """Pop the pending queue and merge it into the ledger."""

    _exit(cmd_sync(_settings(ctx)))


@app.command("ledger")
def ledger_cmd(
    ctx: typer.Context,
    limit: Annotated[int | None, typer.Option(help="Show at most N rows.")] = None,
) -> None:
    """Print the ledger, newest first."""

    _exit(cmd_ledger(_settings(ctx), limit))


@app.command("add")
def add_cmd(
    ctx: typer.Context,
    amount: Annotated[str, typer.Argument()],
    category: Annotated[str, typer.Argument()],
    income: Annotated[bool, typer.Option(help="Record as income instead of expense.")] = False,
    note: Annotated[str | None, typer.Option()] = None,
) -> None:
    """Add a manual ledger entry."""

    _exit(cmd_add(_settings(ctx), amount, category, income=income, note=note))


@app.callback()
def _root(
    ctx: typer.Context,
    database_url: Annotated[
        str | None,
        typer.Option(help="Override SPENDWATCH_DATABASE_URL (falls back to env var)."),
    ] = None,
) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()
    ctx.obj = {"database_url": database_url}


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m spendwatch.cli`
    app()
