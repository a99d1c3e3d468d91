"""Status command for lock overview."""

from datetime import UTC, datetime
from pathlib import Path

import typer
from rich.markup import escape

from ..core import LockStore
from ..models import LockRecord, LockState
from ..output import get_output_context
from ._shared import (
    EXIT_TIMEOUT,
    cli_session,
    load_config_or_exit,
    resolve_key_or_exit,
    root_option,
)


def _format_age(seconds: float) -> str:
    if seconds < 0:
        return f"{-seconds:.0f}s ahead"
    if seconds < 120:
        return f"{seconds:.0f}s ago"
    return f"{seconds / 60:.0f}m ago"


def status(
    key: str | None = typer.Argument(None, help="Resource key (settings or photo:<path>)"),
    item: str | None = typer.Option(None, "--item", "-i", help="Item path relative to root"),
    root: Path = root_option(),
) -> None:
    """Show who holds locks under the data root."""
    ctx = get_output_context()
    config = load_config_or_exit(root)
    session = cli_session(config)
    threshold = config.locks.stale_threshold_seconds
    now = datetime.now(UTC)

    store = LockStore(root, config.locks.io_timeout_seconds)
    if key or item:
        resource_key = resolve_key_or_exit(key, item)
        try:
            record = store.read(resource_key)
        except TimeoutError:
            ctx.error(f"Timed out reading the lock on {resource_key}")
            raise typer.Exit(EXIT_TIMEOUT) from None
        records = [record] if record is not None else []
        if not records:
            unclaimed = LockState.UNCLAIMED.value
            ctx.result({"resource_key": resource_key, "state": unclaimed, "locks": []})
            ctx.print(f"[green]{escape(resource_key)}: unclaimed[/green]")
            return
    else:
        records = store.list_records()
        if not records:
            ctx.result({"locks": []})
            ctx.print("No locks held")
            return

    def describe(record: LockRecord) -> dict:
        if record.is_stale(threshold, now):
            state = LockState.STALE
        elif record.session_id == session.session_id:
            state = LockState.HELD_BY_ME
        else:
            state = LockState.HELD_BY_OTHER
        return {
            "resource_key": record.resource_key,
            "state": state.value,
            "holder": record.holder.model_dump(mode="json"),
            "claimed_at": record.claimed_at.isoformat(),
            "last_renewed_at": record.last_renewed_at.isoformat(),
            "age_seconds": round(record.age(now).total_seconds(), 3),
        }

    entries = [describe(r) for r in records]
    ctx.result({"locks": entries})
    ctx.table(
        "Locks",
        ["Resource", "Holder", "Device", "Renewed", "State"],
        [
            [
                e["resource_key"],
                e["holder"]["user_display_name"],
                e["holder"]["device_name"],
                _format_age(e["age_seconds"]),
                e["state"].replace("_", " "),
            ]
            for e in entries
        ],
    )
