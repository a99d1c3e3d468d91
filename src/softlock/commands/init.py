"""Init command implementation."""

from pathlib import Path

import typer
from rich.markup import escape

from ..config import get_config_path, write_config_template
from ..core import ensure_lock_dir
from ..output import get_output_context
from ._shared import root_option


def init(root: Path = root_option()) -> None:
    """Prepare a data root for soft locking."""
    ctx = get_output_context()

    try:
        locks_dir = ensure_lock_dir(root)
    except OSError as e:
        ctx.error(f"Cannot create lock folder: {e}")
        raise typer.Exit(1) from None

    config_path = get_config_path(root)
    created = False
    if not config_path.exists():
        try:
            write_config_template(root)
        except OSError as e:
            ctx.error(f"Cannot write config: {e}")
            raise typer.Exit(1) from None
        created = True
        ctx.print(f"[green]Created config template:[/green] {escape(str(config_path))}")
    else:
        ctx.print(f"[yellow]Config already exists:[/yellow] {escape(str(config_path))}")

    ctx.result(
        {"locks_dir": str(locks_dir), "config": str(config_path), "config_created": created}
    )
    ctx.print(f"[bold green]Lock folder ready:[/bold green] {escape(str(locks_dir))}")
