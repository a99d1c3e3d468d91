"""Pydantic data models for softlock.

- SessionIdentity: who holds (or wants) a lock
- LockRecord: the persisted claim on one resource key
- LockState: a resource's state as seen by one session
"""

from .lock import LockRecord, LockState, as_utc
from .session import SessionIdentity

__all__ = [
    "LockRecord",
    "LockState",
    "SessionIdentity",
    "as_utc",
]
