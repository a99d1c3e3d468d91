"""CLI command implementations for softlock.

This package contains the implementation of each CLI command,
separated from the CLI framework setup in cli.py.
"""

from .claim import claim, release
from .init import init
from .prune import prune
from .status import status
from .whoami import whoami

__all__ = [
    "claim",
    "init",
    "prune",
    "release",
    "status",
    "whoami",
]
