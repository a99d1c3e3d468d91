"""Access gates built on the soft-lock protocol.

A gate wraps the evaluate/claim/heartbeat/release cycle a UI goes through
when it opens a protected resource:

- BLOCKING gates guard the shared settings. Another live holder blocks
  entry until the user asks to check again.
- ADVISORY gates guard single archive items. Another live holder only
  produces a dismissible warning; local edits stay allowed.

Gates never retry on their own. ``close()`` (or leaving the ``with`` block)
cancels the heartbeat before releasing, so no timer can revive the lock.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from ..config import LocksConfig
from ..errors import ClaimWriteError
from ..models import LockRecord, LockState, SessionIdentity
from .heartbeat import LockHeartbeat
from .keys import item_key, settings_key
from .lock_service import active_other_sessions, remove_lock, upsert_lock

logger = logging.getLogger(__name__)


class GateMode(str, Enum):
    """How a gate reacts to another live holder."""

    BLOCKING = "blocking"
    ADVISORY = "advisory"


@dataclass
class GateDecision:
    """Outcome of one gate evaluation.

    Attributes:
        resource_key: Resource the gate protects.
        state: Resource state after evaluation.
        entered: Whether the caller may proceed to edit.
        holders: Other sessions holding the resource.
        warning: Dismissible advisory message, if any.
        error: Claim failure reason, if the claim write failed.
    """

    resource_key: str
    state: LockState
    entered: bool
    holders: list[SessionIdentity] = field(default_factory=list)
    warning: str | None = None
    error: str | None = None

    @property
    def blocked(self) -> bool:
        return not self.entered

    def holder_label(self) -> str | None:
        """Describe the other holder for display, if there is one."""
        if not self.holders:
            return None
        return self.holders[0].describe()

    def to_dict(self) -> dict:
        return {
            "resource_key": self.resource_key,
            "state": self.state.value,
            "entered": self.entered,
            "holders": [h.model_dump(mode="json") for h in self.holders],
            "warning": self.warning,
            "error": self.error,
        }


class LockGate:
    """Evaluate, claim, renew and release one resource for one session."""

    def __init__(
        self,
        root: Path,
        resource_key: str,
        session: SessionIdentity,
        *,
        mode: GateMode = GateMode.BLOCKING,
        config: LocksConfig | None = None,
        clock: Callable[[], datetime] | None = None,
        start_heartbeat: bool = True,
    ) -> None:
        self.root = root
        self.resource_key = resource_key
        self.session = session
        self.mode = mode
        self.config = config or LocksConfig()
        self.clock = clock or (lambda: datetime.now(UTC))
        self.start_heartbeat = start_heartbeat

        self.decision: GateDecision | None = None
        self.claim: LockRecord | None = None
        self.heartbeat: LockHeartbeat | None = None

    @property
    def held(self) -> bool:
        return self.claim is not None

    def evaluate(self) -> GateDecision:
        """Prune, look for other holders, and claim if there are none."""
        if self.held:
            self.decision = GateDecision(self.resource_key, LockState.HELD_BY_ME, entered=True)
            return self.decision

        try:
            holders = active_other_sessions(
                self.root,
                self.resource_key,
                self.session.session_id,
                stale_threshold_seconds=self.config.stale_threshold_seconds,
                now=self.clock(),
                io_timeout_seconds=self.config.io_timeout_seconds,
            )
        except TimeoutError:
            reason = f"timed out reading the lock after {self.config.io_timeout_seconds}s"
            logger.error(f"Could not check '{self.resource_key}': {reason}")
            return self._failed(reason)
        if holders:
            self.decision = self._contended(holders)
            return self.decision

        try:
            self.claim = upsert_lock(
                self.root,
                self.resource_key,
                self.session,
                now=self.clock(),
                io_timeout_seconds=self.config.io_timeout_seconds,
            )
        except ClaimWriteError as e:
            logger.error(str(e))
            return self._failed(e.reason)

        self._begin_heartbeat()
        self.decision = GateDecision(self.resource_key, LockState.HELD_BY_ME, entered=True)
        return self.decision

    def check_again(self) -> GateDecision:
        """Manual re-evaluation after being blocked or warned."""
        return self.evaluate()

    def dismiss_warning(self) -> None:
        """Clear an advisory warning without changing access."""
        if self.decision is not None:
            self.decision.warning = None

    def close(self) -> None:
        """Stop the heartbeat and release the lock if this gate claimed it."""
        if self.heartbeat is not None:
            self.heartbeat.cancel()
            self.heartbeat = None
        if self.claim is None:
            return
        self.claim = None
        remove_lock(
            self.root,
            self.resource_key,
            self.session.session_id,
            io_timeout_seconds=self.config.io_timeout_seconds,
        )

    def __enter__(self) -> "LockGate":
        self.evaluate()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _failed(self, reason: str) -> GateDecision:
        # Blocking gates stay shut; advisory gates still allow local edits
        self.decision = GateDecision(
            self.resource_key,
            LockState.UNCLAIMED,
            entered=self.mode == GateMode.ADVISORY,
            error=reason,
        )
        return self.decision

    def _contended(self, holders: list[SessionIdentity]) -> GateDecision:
        label = holders[0].describe()
        if self.mode == GateMode.BLOCKING:
            logger.info(f"'{self.resource_key}' is in use by {label}")
            return GateDecision(
                self.resource_key, LockState.HELD_BY_OTHER, entered=False, holders=holders
            )
        return GateDecision(
            self.resource_key,
            LockState.HELD_BY_OTHER,
            entered=True,
            holders=holders,
            warning=f"{label} may also be editing this item",
        )

    def _begin_heartbeat(self) -> None:
        self.heartbeat = LockHeartbeat(
            self.root,
            self.resource_key,
            self.session,
            interval_seconds=self.config.heartbeat_interval_seconds,
            io_timeout_seconds=self.config.io_timeout_seconds,
            clock=self.clock,
            claim=self.claim,
        )
        if self.start_heartbeat:
            self.heartbeat.start()


def settings_gate(
    root: Path,
    session: SessionIdentity,
    **kwargs,
) -> LockGate:
    """Create the blocking gate for the shared settings."""
    return LockGate(root, settings_key(), session, mode=GateMode.BLOCKING, **kwargs)


def item_gate(
    root: Path,
    rel_path: str | Path,
    session: SessionIdentity,
    **kwargs,
) -> LockGate:
    """Create the advisory gate for one archive item."""
    return LockGate(root, item_key(rel_path), session, mode=GateMode.ADVISORY, **kwargs)
