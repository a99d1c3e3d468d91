"""Shared test fixtures for softlock tests."""

from datetime import UTC, datetime
from pathlib import Path

import pytest
from typer.testing import CliRunner

from softlock.models import SessionIdentity

T0 = datetime(2026, 1, 18, 9, 0, 0, 123456, tzinfo=UTC)


@pytest.fixture
def t0() -> datetime:
    """Fixed wall-clock instant used as the start of simulated time."""
    return T0


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    """Create an empty shared data root."""
    root = tmp_path / "Family Archive"
    root.mkdir()
    return root


@pytest.fixture
def session_a() -> SessionIdentity:
    """Session on the first machine."""
    return SessionIdentity(
        session_id="a" * 32,
        user_display_name="Alice Example",
        device_name="alice-imac",
        app_version="1.2",
        created_at=datetime(2026, 1, 18, 8, 55, tzinfo=UTC),
    )


@pytest.fixture
def session_b() -> SessionIdentity:
    """Session on the second machine."""
    return SessionIdentity(
        session_id="b" * 32,
        user_display_name="Bob Example",
        device_name="bob-laptop",
        app_version="1.2",
        created_at=datetime(2026, 1, 18, 8, 58, tzinfo=UTC),
    )
