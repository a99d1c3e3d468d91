"""Data-root layout utilities."""

from pathlib import Path

from ..constants import ARCHIVE_DATA_DIRNAME, LOCKS_DIRNAME


def get_archive_data_dir(root: Path) -> Path:
    """Get the portable archive data folder inside a data root."""
    return root / ARCHIVE_DATA_DIRNAME


def get_locks_dir(root: Path) -> Path:
    """Get the folder holding lock records for a data root."""
    return get_archive_data_dir(root) / LOCKS_DIRNAME


def ensure_lock_dir(root: Path) -> Path:
    """Create the lock folder if missing.

    Args:
        root: Shared data root

    Returns:
        Path to the lock folder

    Raises:
        OSError: If the folder cannot be created
    """
    locks_dir = get_locks_dir(root)
    locks_dir.mkdir(parents=True, exist_ok=True)
    return locks_dir
