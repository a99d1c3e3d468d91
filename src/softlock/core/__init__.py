"""Core soft-lock logic for softlock.

This package contains the lock protocol and its filesystem adapter:
- archive: Data-root layout
- keys: Resource key namespace and key-to-filename mapping
- session: Per-process session identity
- lock_store: Atomic lock record I/O
- lock_service: Claim, renew, release, query and prune operations
- heartbeat: Cancellable periodic renewal
- gate: Blocking and advisory access gates for UI callers
"""

from .archive import ensure_lock_dir, get_archive_data_dir, get_locks_dir
from .gate import GateDecision, GateMode, LockGate, item_gate, settings_gate
from .heartbeat import LockHeartbeat
from .keys import (
    is_item_key,
    item_key,
    lock_filename,
    normalize_item_path,
    parse_resource_key,
    settings_key,
)
from .lock_service import (
    active_other_sessions,
    lock_state,
    prune_stale_locks,
    read_lock,
    remove_lock,
    upsert_lock,
    verify_claim,
)
from .lock_store import LockStore
from .session import (
    current_session_id,
    default_session_info,
    new_session_info,
    session_with_overrides,
)

__all__ = [
    "GateDecision",
    "GateMode",
    "LockGate",
    "LockHeartbeat",
    "LockStore",
    "active_other_sessions",
    "current_session_id",
    "default_session_info",
    "ensure_lock_dir",
    "get_archive_data_dir",
    "get_locks_dir",
    "is_item_key",
    "item_gate",
    "item_key",
    "lock_filename",
    "lock_state",
    "new_session_info",
    "normalize_item_path",
    "parse_resource_key",
    "prune_stale_locks",
    "read_lock",
    "remove_lock",
    "session_with_overrides",
    "settings_gate",
    "settings_key",
    "upsert_lock",
    "verify_claim",
]
