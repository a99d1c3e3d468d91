"""Claim and release commands."""

import signal
import threading
from pathlib import Path

import typer
from rich.markup import escape

from ..core import GateMode, LockGate, LockStore, is_item_key, remove_lock
from ..output import get_output_context
from ._shared import (
    EXIT_BLOCKED,
    EXIT_CLAIM_FAILED,
    EXIT_TIMEOUT,
    cli_session,
    load_config_or_exit,
    resolve_key_or_exit,
    root_option,
)


def claim(
    key: str | None = typer.Argument(None, help="Resource key (settings or photo:<path>)"),
    item: str | None = typer.Option(None, "--item", "-i", help="Item path relative to root"),
    once: bool = typer.Option(
        False, "--once", help="Claim and exit without renewing (the lock goes stale)"
    ),
    duration: float | None = typer.Option(
        None, "--duration", "-d", min=0, help="Release after this many seconds"
    ),
    root: Path = root_option(),
) -> None:
    """Claim a resource.

    The settings are blocked while another session holds them; an item held
    elsewhere only produces a warning and is not claimed.

    Unless --once is given, the lock is renewed until interrupted and then
    released.
    """
    ctx = get_output_context()
    config = load_config_or_exit(root)
    resource_key = resolve_key_or_exit(key, item)
    session = cli_session(config)

    mode = GateMode.ADVISORY if is_item_key(resource_key) else GateMode.BLOCKING
    gate = LockGate(
        root,
        resource_key,
        session,
        mode=mode,
        config=config.locks,
        start_heartbeat=not once,
    )
    decision = gate.evaluate()

    if decision.error is not None:
        ctx.error(f"Could not claim {resource_key}: {decision.error}", decision.to_dict())
        raise typer.Exit(EXIT_CLAIM_FAILED)

    if decision.blocked:
        label = decision.holder_label()
        ctx.error(f"{resource_key} is in use by {label}", decision.to_dict())
        ctx.print("Run the command again to re-check.")
        raise typer.Exit(EXIT_BLOCKED)

    ctx.result({**decision.to_dict(), "session_id": session.session_id})
    if decision.warning:
        ctx.warning(decision.warning)
        ctx.print(f"Not claiming {escape(resource_key)} while another session holds it")
        return
    ctx.print(f"[green]Claimed {escape(resource_key)}[/green] as {escape(session.describe())}")

    if once:
        return

    stop = threading.Event()
    previous = signal.signal(signal.SIGTERM, lambda signum, frame: stop.set())
    try:
        ctx.print("Holding lock; press Ctrl+C to release")
        stop.wait(duration)
    except KeyboardInterrupt:
        pass
    finally:
        signal.signal(signal.SIGTERM, previous)
        gate.close()
    ctx.print(f"Released {escape(resource_key)}")


def release(
    key: str | None = typer.Argument(None, help="Resource key (settings or photo:<path>)"),
    item: str | None = typer.Option(None, "--item", "-i", help="Item path relative to root"),
    session_id: str | None = typer.Option(
        None, "--session-id", help="Session releasing the lock (for the log only)"
    ),
    root: Path = root_option(),
) -> None:
    """Release a resource regardless of who holds it."""
    ctx = get_output_context()
    config = load_config_or_exit(root)
    resource_key = resolve_key_or_exit(key, item)
    io_timeout = config.locks.io_timeout_seconds

    try:
        existing = LockStore(root, io_timeout).read(resource_key)
    except TimeoutError:
        ctx.error(f"Timed out reading the lock on {resource_key}")
        raise typer.Exit(EXIT_TIMEOUT) from None
    remove_lock(
        root,
        resource_key,
        session_id or cli_session(config).session_id,
        io_timeout_seconds=io_timeout,
    )

    holder = existing.holder.model_dump(mode="json") if existing else None
    ctx.result({"resource_key": resource_key, "released": existing is not None, "holder": holder})
    if existing is None:
        ctx.print(f"[yellow]{escape(resource_key)} was not locked[/yellow]")
    else:
        holder_label = escape(existing.holder.describe())
        ctx.print(f"[green]Released {escape(resource_key)}[/green] (held by {holder_label})")
