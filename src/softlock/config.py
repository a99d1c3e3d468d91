"""Configuration management for softlock.

Lease timing is shared by every session using the same data root, so the
config file lives inside the root rather than in a per-user location.
"""

import tomllib
from pathlib import Path

import tomli_w
from pydantic import BaseModel, Field, ValidationError, model_validator

from .constants import (
    ARCHIVE_DATA_DIRNAME,
    CONFIG_FILENAME,
    HEARTBEAT_INTERVAL_SECONDS,
    MAX_CLOCK_SKEW_SECONDS,
    META_DIRNAME,
    MIN_HEARTBEAT_SAFETY_RATIO,
    PROPAGATION_DELAY_SECONDS,
    STALE_THRESHOLD_SECONDS,
)
from .errors import ConfigError


class LocksConfig(BaseModel):
    """Lease timing for lock records."""

    stale_threshold_seconds: float = Field(default=STALE_THRESHOLD_SECONDS, gt=0)
    heartbeat_interval_seconds: float = Field(default=HEARTBEAT_INTERVAL_SECONDS, gt=0)
    max_clock_skew_seconds: float = Field(default=MAX_CLOCK_SKEW_SECONDS, ge=0)
    propagation_delay_seconds: float = Field(default=PROPAGATION_DELAY_SECONDS, ge=0)
    io_timeout_seconds: float | None = Field(
        default=None, gt=0, description="Deadline for each filesystem call (None blocks)"
    )

    @model_validator(mode="after")
    def _check_safety_margins(self) -> "LocksConfig":
        ratio_floor = self.heartbeat_interval_seconds * MIN_HEARTBEAT_SAFETY_RATIO
        if self.stale_threshold_seconds < ratio_floor:
            raise ValueError(
                f"stale_threshold_seconds ({self.stale_threshold_seconds}) must be at least "
                f"{MIN_HEARTBEAT_SAFETY_RATIO}x heartbeat_interval_seconds "
                f"({self.heartbeat_interval_seconds})"
            )
        worst_case = (
            self.heartbeat_interval_seconds
            + self.max_clock_skew_seconds
            + self.propagation_delay_seconds
        )
        if self.stale_threshold_seconds <= worst_case:
            raise ValueError(
                f"stale_threshold_seconds ({self.stale_threshold_seconds}) must exceed "
                f"heartbeat + clock skew + propagation delay ({worst_case})"
            )
        return self


class SessionConfig(BaseModel):
    """Optional overrides for host-supplied session names."""

    user_display_name: str | None = None
    device_name: str | None = None


class SoftLockConfig(BaseModel):
    """Root configuration for softlock."""

    locks: LocksConfig = Field(default_factory=LocksConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)


def get_config_path(root: Path) -> Path:
    """Get path to softlock.toml for a data root."""
    return root / ARCHIVE_DATA_DIRNAME / META_DIRNAME / CONFIG_FILENAME


def load_config(root: Path) -> SoftLockConfig:
    """Load config from the data root.

    Args:
        root: Shared data root

    Returns:
        Loaded configuration, or defaults if softlock.toml doesn't exist

    Raises:
        ConfigError: If the file is not valid TOML or fails validation
    """
    config_path = get_config_path(root)
    if not config_path.exists():
        return SoftLockConfig()
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        return SoftLockConfig.model_validate(data)
    except (tomllib.TOMLDecodeError, ValidationError) as e:
        raise ConfigError(f"Invalid config {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config {config_path}: {e}") from e


def write_config_template(root: Path) -> Path:
    """Write default softlock.toml template.

    Args:
        root: Shared data root

    Returns:
        Path to the written config file
    """
    config_path = get_config_path(root)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    template = {
        # Every session sharing this root must agree on these values
        "locks": {
            "stale_threshold_seconds": STALE_THRESHOLD_SECONDS,
            "heartbeat_interval_seconds": HEARTBEAT_INTERVAL_SECONDS,
            "max_clock_skew_seconds": MAX_CLOCK_SKEW_SECONDS,
            "propagation_delay_seconds": PROPAGATION_DELAY_SECONDS,
        },
        "session": {},
    }
    with open(config_path, "wb") as f:
        tomli_w.dump(template, f)
    return config_path
