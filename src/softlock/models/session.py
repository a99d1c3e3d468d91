"""Session identity model.

A session is one running process instance. Its identity is written into
every lock record it claims so other sessions can show who is editing.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


class SessionIdentity(BaseModel):
    """Identity of one running process.

    Attributes:
        session_id: Opaque, high-entropy id, unique per process start.
        user_display_name: Human-readable name of the user.
        device_name: Name of the machine running the process.
        app_version: Version of the application that created the session.
        created_at: When the session was created (UTC).
    """

    model_config = ConfigDict(frozen=True)

    session_id: str = Field(description="Unique id for this process start")
    user_display_name: str = Field(description="Display name of the user")
    device_name: str = Field(description="Host device name")
    app_version: str = Field(default="0.0", description="Application version")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def describe(self) -> str:
        """Return a short 'user on device' label for display."""
        return f"{self.user_display_name} on {self.device_name}"
