"""Soft-lock protocol over the shared data root.

Sessions coordinate access to a resource purely through lock records in the
data root. A claim and a heartbeat renewal are the same operation
(``upsert_lock``); there is no compare-and-swap, so two sessions claiming
within one propagation window can both succeed. Last writer wins.

Failure policy:
- Claim write failures raise ClaimWriteError.
- Prune and release failures are logged and swallowed; a lock left behind
  goes stale and is pruned by the next session that looks at it.
- Missing or corrupt records read as unclaimed.
- A read that times out is not "unclaimed": prune skips the record, and
  claim paths raise instead of overwriting a holder they could not see.
- Naive ``now`` values are taken as local time and converted to UTC.
"""

import logging
import threading
import uuid
import weakref
from datetime import UTC, datetime
from pathlib import Path

from ..constants import STALE_THRESHOLD_SECONDS
from ..errors import ClaimWriteError
from ..models import LockRecord, LockState, SessionIdentity, as_utc
from .lock_store import LockStore
from .session import current_session_id, default_session_info

logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()
# Entries disappear once no caller holds a reference to the guard
_key_guards: weakref.WeakValueDictionary[tuple[str, str], threading.RLock] = (
    weakref.WeakValueDictionary()
)

__all__ = [
    "active_other_sessions",
    "current_session_id",
    "default_session_info",
    "key_guard",
    "lock_state",
    "prune_stale_locks",
    "read_lock",
    "remove_lock",
    "upsert_lock",
    "verify_claim",
]


def key_guard(root: Path, resource_key: str) -> threading.RLock:
    """Get the in-process guard serializing operations on one resource.

    Contention between processes is arbitrated by the filesystem; this only
    keeps one process from interleaving its own I/O on the same key.
    """
    ident = (str(root.resolve()), resource_key)
    with _registry_lock:
        guard = _key_guards.get(ident)
        if guard is None:
            guard = threading.RLock()
            _key_guards[ident] = guard
        return guard


def _resolve_now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(UTC)
    return as_utc(now)


def read_lock(
    root: Path,
    resource_key: str,
    *,
    io_timeout_seconds: float | None = None,
) -> LockRecord | None:
    """Read the current record for a resource without pruning."""
    return LockStore(root, io_timeout_seconds).read(resource_key)


def prune_stale_locks(
    root: Path,
    resource_key: str,
    *,
    stale_threshold_seconds: float = STALE_THRESHOLD_SECONDS,
    now: datetime | None = None,
    io_timeout_seconds: float | None = None,
) -> bool:
    """Delete the resource's record if it is stale.

    Safe to race with other sessions pruning the same record.

    Args:
        root: Shared data root
        resource_key: Resource to check
        stale_threshold_seconds: Max time since renewal before a record is stale
        now: Current time (defaults to the wall clock)
        io_timeout_seconds: Deadline for each filesystem call

    Returns:
        True if a stale record was deleted
    """
    store = LockStore(root, io_timeout_seconds)
    with key_guard(root, resource_key):
        try:
            record = store.read(resource_key)
        except TimeoutError:
            logger.warning(f"Timed out reading lock on '{resource_key}', not pruning")
            return False
        if record is None:
            return False
        now = _resolve_now(now)
        if not record.is_stale(stale_threshold_seconds, now):
            return False
        try:
            store.delete(resource_key)
        except OSError as e:
            logger.warning(f"Could not prune stale lock on '{resource_key}': {e}")
            return False
    logger.debug(
        f"Pruned stale lock on '{resource_key}' held by {record.holder.describe()} "
        f"(last renewed {record.last_renewed_at.isoformat()})"
    )
    return True


def active_other_sessions(
    root: Path,
    resource_key: str,
    current_session_id: str,
    *,
    stale_threshold_seconds: float = STALE_THRESHOLD_SECONDS,
    now: datetime | None = None,
    io_timeout_seconds: float | None = None,
) -> list[SessionIdentity]:
    """List sessions other than the current one holding the resource.

    Prunes a stale record first.

    Returns:
        Empty if unclaimed or held by current_session_id, otherwise the holder

    Raises:
        TimeoutError: If the record cannot be read within the io timeout
    """
    with key_guard(root, resource_key):
        prune_stale_locks(
            root,
            resource_key,
            stale_threshold_seconds=stale_threshold_seconds,
            now=now,
            io_timeout_seconds=io_timeout_seconds,
        )
        record = LockStore(root, io_timeout_seconds).read(resource_key)
    if record is None or record.session_id == current_session_id:
        return []
    return [record.holder]


def upsert_lock(
    root: Path,
    resource_key: str,
    session: SessionIdentity,
    *,
    now: datetime | None = None,
    io_timeout_seconds: float | None = None,
) -> LockRecord:
    """Claim or renew a resource for a session.

    Overwrites whatever record exists. A renewal by the same session keeps
    the original claim time and claim token.

    Args:
        root: Shared data root
        resource_key: Resource to claim
        session: Claiming session
        now: Current time (defaults to the wall clock)
        io_timeout_seconds: Deadline for each filesystem call

    Returns:
        The record as written

    Raises:
        ClaimWriteError: If the record cannot be written, or the current
            record cannot be read within the io timeout
    """
    store = LockStore(root, io_timeout_seconds)
    now = _resolve_now(now)
    with key_guard(root, resource_key):
        try:
            existing = store.read(resource_key)
        except TimeoutError as e:
            raise ClaimWriteError(
                resource_key, f"timed out reading the current record after {io_timeout_seconds}s"
            ) from e
        if existing is not None and existing.session_id == session.session_id:
            claimed_at = existing.claimed_at
            claim_token = existing.claim_token or uuid.uuid4().hex
        else:
            claimed_at = now
            claim_token = uuid.uuid4().hex

        record = LockRecord(
            resource_key=resource_key,
            session_id=session.session_id,
            user_display_name=session.user_display_name,
            device_name=session.device_name,
            app_version=session.app_version,
            session_started_at=session.created_at,
            claimed_at=claimed_at,
            last_renewed_at=now,
            claim_token=claim_token,
        )
        try:
            store.write(resource_key, record)
        except OSError as e:
            raise ClaimWriteError(resource_key, str(e)) from e

    logger.debug(f"Wrote lock on '{resource_key}' for session {session.session_id}")
    return record


def remove_lock(
    root: Path,
    resource_key: str,
    session_id: str,
    *,
    io_timeout_seconds: float | None = None,
) -> None:
    """Release a resource.

    The stored holder is not checked against session_id; callers release
    only locks they believe they hold. Failures are logged, not raised.
    """
    store = LockStore(root, io_timeout_seconds)
    with key_guard(root, resource_key):
        try:
            store.delete(resource_key)
        except OSError as e:
            logger.warning(f"Could not release lock on '{resource_key}': {e}")
            return
    logger.debug(f"Released lock on '{resource_key}' for session {session_id}")


def lock_state(
    root: Path,
    resource_key: str,
    session_id: str,
    *,
    stale_threshold_seconds: float = STALE_THRESHOLD_SECONDS,
    now: datetime | None = None,
    io_timeout_seconds: float | None = None,
) -> LockState:
    """Report a resource's state as seen by one session, without pruning.

    Raises:
        TimeoutError: If the record cannot be read within the io timeout
    """
    record = read_lock(root, resource_key, io_timeout_seconds=io_timeout_seconds)
    if record is None:
        return LockState.UNCLAIMED
    if record.is_stale(stale_threshold_seconds, _resolve_now(now)):
        return LockState.STALE
    if record.session_id == session_id:
        return LockState.HELD_BY_ME
    return LockState.HELD_BY_OTHER


def verify_claim(
    root: Path,
    resource_key: str,
    record: LockRecord,
    *,
    io_timeout_seconds: float | None = None,
) -> bool:
    """Check that the stored record is still the caller's claim.

    Detects (but does not prevent) another session overwriting the claim.
    A missing record counts as lost.

    Raises:
        TimeoutError: If the record cannot be read within the io timeout
    """
    stored = read_lock(root, resource_key, io_timeout_seconds=io_timeout_seconds)
    return (
        stored is not None
        and stored.session_id == record.session_id
        and stored.claim_token == record.claim_token
    )
