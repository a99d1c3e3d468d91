"""Prune command implementation."""

from datetime import UTC, datetime
from pathlib import Path

import typer
from rich.markup import escape

from ..core import LockStore, prune_stale_locks
from ..output import get_output_context
from ._shared import load_config_or_exit, resolve_key_or_exit, root_option


def prune(
    key: str | None = typer.Argument(None, help="Resource key (defaults to every lock)"),
    item: str | None = typer.Option(None, "--item", "-i", help="Item path relative to root"),
    root: Path = root_option(),
) -> None:
    """Delete stale lock records."""
    ctx = get_output_context()
    config = load_config_or_exit(root)
    locks = config.locks
    now = datetime.now(UTC)

    if key or item:
        keys = [resolve_key_or_exit(key, item)]
    else:
        keys = [r.resource_key for r in LockStore(root, locks.io_timeout_seconds).list_records()]

    pruned = [
        k
        for k in keys
        if prune_stale_locks(
            root,
            k,
            stale_threshold_seconds=locks.stale_threshold_seconds,
            now=now,
            io_timeout_seconds=locks.io_timeout_seconds,
        )
    ]

    ctx.result({"checked": len(keys), "pruned": pruned})
    for k in pruned:
        ctx.print(f"  Pruned {escape(k)}")
    ctx.print(f"[green]Pruned {len(pruned)} of {len(keys)} lock(s)[/green]")
