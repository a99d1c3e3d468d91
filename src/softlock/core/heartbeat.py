"""Heartbeat renewal for held locks.

While a resource is held, the heartbeat re-issues ``upsert_lock`` at a fixed
interval well below the stale threshold so the holder's record is never
pruned by other sessions. Renewal failures are logged and left for the next
tick. ``tick()`` can be driven directly with an injected clock.
"""

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from ..constants import HEARTBEAT_INTERVAL_SECONDS
from ..errors import ClaimWriteError
from ..models import LockRecord, SessionIdentity
from .lock_service import key_guard, read_lock, upsert_lock

logger = logging.getLogger(__name__)


class LockHeartbeat:
    """Cancellable periodic renewal of one lock."""

    def __init__(
        self,
        root: Path,
        resource_key: str,
        session: SessionIdentity,
        *,
        interval_seconds: float = HEARTBEAT_INTERVAL_SECONDS,
        io_timeout_seconds: float | None = None,
        clock: Callable[[], datetime] | None = None,
        claim: LockRecord | None = None,
    ) -> None:
        self.root = root
        self.resource_key = resource_key
        self.session = session
        self.interval_seconds = interval_seconds
        self.io_timeout_seconds = io_timeout_seconds
        self.clock = clock or (lambda: datetime.now(UTC))

        self.claim = claim
        self.contested = False
        self.renewals = 0
        self.failures = 0

        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self, now: datetime | None = None) -> bool:
        """Renew the lock once.

        Skips once cancelled, or if another operation on the same key is in
        flight in this process.

        Returns:
            True if the record was renewed
        """
        guard = key_guard(self.root, self.resource_key)
        if not guard.acquire(blocking=False):
            logger.debug(f"Heartbeat for '{self.resource_key}' skipped, operation in flight")
            return False
        try:
            if self._stop.is_set():
                return False
            self._check_contested()
            try:
                record = upsert_lock(
                    self.root,
                    self.resource_key,
                    self.session,
                    now=now or self.clock(),
                    io_timeout_seconds=self.io_timeout_seconds,
                )
            except ClaimWriteError as e:
                self.failures += 1
                logger.warning(f"Heartbeat renewal failed for '{self.resource_key}': {e.reason}")
                return False
        finally:
            guard.release()

        self.claim = record
        self.renewals += 1
        return True

    def _check_contested(self) -> None:
        if self.claim is None:
            return
        try:
            stored = read_lock(
                self.root, self.resource_key, io_timeout_seconds=self.io_timeout_seconds
            )
        except TimeoutError:
            logger.debug(f"Timed out checking '{self.resource_key}' for overwrites")
            return
        if stored is None:
            return
        if stored.session_id != self.claim.session_id or (
            stored.claim_token != self.claim.claim_token
        ):
            if not self.contested:
                logger.warning(
                    f"Lock on '{self.resource_key}' was overwritten by "
                    f"{stored.holder.describe()}; renewing anyway"
                )
            self.contested = True

    def start(self) -> None:
        """Start renewing on a background thread."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            daemon=True,
            name=f"softlock-heartbeat-{self.resource_key}",
        )
        self._thread.start()

    def cancel(self) -> None:
        """Stop renewing. Safe to call more than once."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=max(1.0, self.interval_seconds))
        self._thread = None

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.tick()
