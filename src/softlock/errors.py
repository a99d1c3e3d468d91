"""Softlock errors."""


class SoftLockError(Exception):
    """Base exception for softlock errors."""


class ClaimWriteError(SoftLockError):
    """Raised when a lock record could not be written while claiming."""

    def __init__(self, resource_key: str, reason: str) -> None:
        self.resource_key = resource_key
        self.reason = reason
        super().__init__(f"Could not claim '{resource_key}': {reason}")


class ResourceKeyError(SoftLockError, ValueError):
    """Raised for empty or unrecognized resource keys."""


class ConfigError(SoftLockError):
    """Raised when softlock.toml is unreadable or inconsistent."""
