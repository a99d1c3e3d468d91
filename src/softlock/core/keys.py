"""Resource key namespace.

Two disjoint key families exist: the reserved singleton key for the shared
settings, and one ``photo:`` key per archive item derived from the item's
path relative to the data root.
"""

import hashlib
import unicodedata
from pathlib import PurePath

from ..constants import (
    ITEM_KEY_PREFIX,
    LOCK_FILE_PREFIX,
    LOCK_FILE_SUFFIX,
    SETTINGS_RESOURCE_KEY,
)
from ..errors import ResourceKeyError


def settings_key() -> str:
    """Return the reserved key for the global settings resource."""
    return SETTINGS_RESOURCE_KEY


def normalize_item_path(rel_path: str | PurePath) -> str:
    """Normalize an item path so every client derives the same key.

    Backslashes become forward slashes, leading ``./`` and ``/`` are dropped,
    duplicate separators collapse, and the text is NFC-normalized.

    Raises:
        ResourceKeyError: If nothing is left after normalization
    """
    text = unicodedata.normalize("NFC", str(rel_path)).replace("\\", "/")
    parts = [p for p in text.split("/") if p and p != "."]
    if not parts:
        raise ResourceKeyError(f"Empty item path: {rel_path!r}")
    return "/".join(parts)


def item_key(rel_path: str | PurePath) -> str:
    """Build the per-item key for a path relative to the data root."""
    return f"{ITEM_KEY_PREFIX}{normalize_item_path(rel_path)}"


def is_item_key(resource_key: str) -> bool:
    """Check whether a key belongs to the per-item family."""
    return resource_key.startswith(ITEM_KEY_PREFIX)


def parse_resource_key(text: str) -> str:
    """Validate a resource key given as text.

    Accepts the settings key or a ``photo:<path>`` key. Item paths are
    normalized, so ``photo:./a\\b.jpg`` and ``photo:a/b.jpg`` are the same key.

    Raises:
        ResourceKeyError: If the key is empty or in no known namespace
    """
    stripped = text.strip()
    if stripped == SETTINGS_RESOURCE_KEY:
        return stripped
    if stripped.startswith(ITEM_KEY_PREFIX):
        return item_key(stripped[len(ITEM_KEY_PREFIX) :])
    raise ResourceKeyError(
        f"Unknown resource key {text!r} "
        f"(expected '{SETTINGS_RESOURCE_KEY}' or '{ITEM_KEY_PREFIX}<path>')"
    )


def lock_filename(resource_key: str) -> str:
    """Map a resource key to its lock record filename.

    The name is derived from a SHA-256 of the key, so separators, unicode and
    long paths in item keys never reach the filesystem.
    """
    digest = hashlib.sha256(resource_key.encode("utf-8")).hexdigest()
    return f"{LOCK_FILE_PREFIX}{digest}{LOCK_FILE_SUFFIX}"
