"""Lock record model.

One record per resource key is persisted under the shared data root.
Writes overwrite, never append. Ownership is advisory: the record says who
claimed the resource, the filesystem does not enforce it.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from .session import SessionIdentity


class LockState(str, Enum):
    """State of a resource as observed by one session."""

    UNCLAIMED = "unclaimed"
    HELD_BY_ME = "held_by_me"
    HELD_BY_OTHER = "held_by_other"
    STALE = "stale"


def as_utc(value: datetime) -> datetime:
    """Convert a datetime to UTC, reading a naive value as local time."""
    return value.astimezone(UTC)


class LockRecord(BaseModel):
    """Persisted claim on one resource.

    Attributes:
        resource_key: Logical key of the protected resource.
        session_id: Session id of the holder.
        user_display_name: Holder's display name at claim/renewal time.
        device_name: Holder's device name at claim/renewal time.
        app_version: Holder's application version.
        session_started_at: When the holder's session was created.
        claimed_at: When the holder first claimed the resource.
        last_renewed_at: Last claim or heartbeat renewal (for stale detection).
        claim_token: Nonce minted on first claim, kept across renewals.
    """

    resource_key: str = Field(description="Logical resource key")
    session_id: str = Field(description="Holder session id")
    user_display_name: str = Field(description="Holder display name")
    device_name: str = Field(description="Holder device name")
    app_version: str = Field(default="0.0", description="Holder application version")
    session_started_at: datetime | None = Field(default=None)
    claimed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    last_renewed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    claim_token: str | None = Field(default=None, description="Fencing nonce")

    @field_validator("session_started_at", "claimed_at", "last_renewed_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # Records written by older clients may carry naive timestamps
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def holder(self) -> SessionIdentity:
        """Snapshot of the holding session."""
        return SessionIdentity(
            session_id=self.session_id,
            user_display_name=self.user_display_name,
            device_name=self.device_name,
            app_version=self.app_version,
            created_at=self.session_started_at or self.claimed_at,
        )

    def age(self, now: datetime | None = None) -> timedelta:
        """Time elapsed since the last renewal."""
        now = as_utc(now) if now is not None else datetime.now(UTC)
        return now - self.last_renewed_at

    def is_stale(self, stale_threshold_seconds: float, now: datetime | None = None) -> bool:
        """Check if the record has gone unrenewed longer than the threshold.

        A renewal timestamp in the future (holder clock ahead) counts as fresh
        unless it is more than a whole threshold ahead.
        """
        age = self.age(now).total_seconds()
        return age > stale_threshold_seconds or age < -stale_threshold_seconds
