"""Whoami command implementation."""

from pathlib import Path

import typer
from rich.markup import escape

from ..config import SoftLockConfig
from ..output import get_output_context
from ._shared import ROOT_HELP, cli_session, load_config_or_exit


def whoami(
    root: Path | None = typer.Option(
        None,
        "--root",
        "-r",
        envvar="SOFTLOCK_ROOT",
        exists=True,
        file_okay=False,
        resolve_path=True,
        help=f"{ROOT_HELP}; applies its session overrides",
    ),
) -> None:
    """Show this process's session identity."""
    ctx = get_output_context()
    config = load_config_or_exit(root) if root is not None else SoftLockConfig()
    session = cli_session(config)

    ctx.result(session.model_dump(mode="json"))
    ctx.print(f"[bold]Session:[/bold] {session.session_id}")
    ctx.print(f"[bold]User:[/bold] {escape(session.user_display_name)}")
    ctx.print(f"[bold]Device:[/bold] {escape(session.device_name)}")
    ctx.print(f"[bold]Version:[/bold] {session.app_version}")
