"""Helpers shared by softlock commands."""

from pathlib import Path

import typer

from ..config import SoftLockConfig, load_config
from ..core import default_session_info, item_key, parse_resource_key, session_with_overrides
from ..errors import ConfigError, ResourceKeyError
from ..models import SessionIdentity
from ..output import get_output_context

# Exit codes
EXIT_BLOCKED = 1
EXIT_CLAIM_FAILED = 2
EXIT_USAGE = 3
EXIT_TIMEOUT = 4

ROOT_HELP = "Shared data root (or set SOFTLOCK_ROOT)"


def root_option() -> Path:
    return typer.Option(
        ...,
        "--root",
        "-r",
        envvar="SOFTLOCK_ROOT",
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
        help=ROOT_HELP,
    )


def load_config_or_exit(root: Path) -> SoftLockConfig:
    """Load the root's config, exiting with a usage error if it is invalid."""
    try:
        return load_config(root)
    except ConfigError as e:
        get_output_context().error(str(e))
        raise typer.Exit(EXIT_USAGE) from None


def resolve_key_or_exit(key: str | None, item: str | None) -> str:
    """Turn a KEY argument or --item path into a resource key."""
    ctx = get_output_context()
    if key and item:
        ctx.error("Pass either a resource key or --item, not both")
        raise typer.Exit(EXIT_USAGE)
    if not key and not item:
        ctx.error("A resource key or --item is required")
        raise typer.Exit(EXIT_USAGE)
    try:
        return item_key(item) if item else parse_resource_key(key or "")
    except ResourceKeyError as e:
        ctx.error(str(e))
        raise typer.Exit(EXIT_USAGE) from None


def cli_session(config: SoftLockConfig) -> SessionIdentity:
    """Get this process's session with any configured name overrides."""
    return session_with_overrides(
        default_session_info(),
        user_display_name=config.session.user_display_name,
        device_name=config.session.device_name,
    )
