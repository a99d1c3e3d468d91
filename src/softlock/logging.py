"""Logging configuration for the softlock CLI."""

import logging
from enum import IntEnum

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "softlock"


class LogLevel(IntEnum):
    """Log level enumeration."""

    QUIET = logging.WARNING
    NORMAL = logging.INFO
    VERBOSE = logging.DEBUG


def configure_logging(
    verbosity: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    debug: bool = False,
) -> Console:
    """Configure softlock logging based on CLI options.

    Log records go to stderr; the returned console writes command output
    to stdout.

    Args:
        verbosity: Number of -v flags (0=normal, 1=debug, 2+=debug with source)
        quiet: Only show warnings and errors (takes precedence)
        no_color: Disable colored output
        debug: Enable debug logging with timestamps and source paths

    Returns:
        Rich console for command output

    Note:
        Heartbeat and release failures are logged at WARNING, so they stay
        visible even with --quiet.
    """
    if quiet:
        level = LogLevel.QUIET
    elif debug or verbosity >= 1:
        level = LogLevel.VERBOSE
    else:
        level = LogLevel.NORMAL

    force_terminal = False if no_color else None
    handler = RichHandler(
        console=Console(stderr=True, force_terminal=force_terminal, no_color=no_color),
        show_time=debug or verbosity >= 2,
        show_path=debug or verbosity >= 2,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    # Replace handlers so repeated invocations in one process don't stack
    logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)

    return Console(force_terminal=force_terminal, no_color=no_color, soft_wrap=True)
