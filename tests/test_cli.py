"""CLI integration tests for softlock."""

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest import mock

from typer.testing import CliRunner

from softlock.cli import app
from softlock.config import get_config_path
from softlock.core.keys import item_key
from softlock.core.lock_service import read_lock, upsert_lock
from softlock.core.lock_store import LockStore
from softlock.models import SessionIdentity


class TestVersionAndHelp:
    """Tests for --version and --help."""

    def test_version_shows_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "softlock" in result.stdout
        assert "0.1.0" in result.stdout

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("init", "whoami", "status", "claim", "release", "prune"):
            assert command in result.stdout

    def test_global_flags_accepted(self, runner: CliRunner) -> None:
        for flag in ("-v", "-q", "--json", "--no-color", "--debug"):
            result = runner.invoke(app, [flag, "--help"])
            assert result.exit_code == 0


class TestInitCommand:
    """Tests for softlock init."""

    def test_creates_lock_folder_and_config(self, runner: CliRunner, data_root: Path) -> None:
        result = runner.invoke(app, ["init", "--root", str(data_root)])
        assert result.exit_code == 0
        assert (data_root / "dMagy Portable Archive Data" / "_locks").is_dir()
        assert get_config_path(data_root).is_file()
        assert "Created config template" in result.stdout

    def test_second_init_keeps_config(self, runner: CliRunner, data_root: Path) -> None:
        runner.invoke(app, ["init", "--root", str(data_root)])
        result = runner.invoke(app, ["init", "--root", str(data_root)])
        assert result.exit_code == 0
        assert "Config already exists" in result.stdout

    def test_root_from_environment(self, runner: CliRunner, data_root: Path) -> None:
        result = runner.invoke(app, ["init"], env={"SOFTLOCK_ROOT": str(data_root)})
        assert result.exit_code == 0
        assert get_config_path(data_root).is_file()

    def test_missing_root_rejected(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(app, ["init", "--root", str(tmp_path / "nope")])
        assert result.exit_code == 2


class TestWhoamiCommand:
    """Tests for softlock whoami."""

    def test_json_output(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--json", "whoami"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert len(data["session_id"]) == 32
        assert data["user_display_name"]
        assert data["device_name"]

    def test_applies_config_overrides(self, runner: CliRunner, data_root: Path) -> None:
        path = get_config_path(data_root)
        path.parent.mkdir(parents=True)
        path.write_text('[session]\nuser_display_name = "Grandma"\n')
        result = runner.invoke(app, ["--json", "whoami", "--root", str(data_root)])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["user_display_name"] == "Grandma"


class TestClaimCommand:
    """Tests for softlock claim."""

    def test_claim_once(self, runner: CliRunner, data_root: Path) -> None:
        result = runner.invoke(app, ["claim", "settings", "--once", "--root", str(data_root)])
        assert result.exit_code == 0
        assert "Claimed settings" in result.stdout
        assert read_lock(data_root, "settings") is not None

    def test_claim_item_json(self, runner: CliRunner, data_root: Path) -> None:
        result = runner.invoke(
            app,
            ["--json", "claim", "--item", "vacation/IMG_0001.jpg", "--once", "--root", str(data_root)],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["resource_key"] == "photo:vacation/IMG_0001.jpg"
        assert data["entered"] is True
        assert read_lock(data_root, item_key("vacation/IMG_0001.jpg")) is not None

    def test_blocked_names_holder(
        self, runner: CliRunner, data_root: Path, session_a: SessionIdentity
    ) -> None:
        upsert_lock(data_root, "settings", session_a)
        result = runner.invoke(app, ["claim", "settings", "--once", "--root", str(data_root)])
        assert result.exit_code == 1
        assert "Alice Example on alice-imac" in result.stdout
        stored = read_lock(data_root, "settings")
        assert stored is not None
        assert stored.session_id == session_a.session_id

    def test_blocked_json(
        self, runner: CliRunner, data_root: Path, session_a: SessionIdentity
    ) -> None:
        upsert_lock(data_root, "settings", session_a)
        result = runner.invoke(
            app, ["--json", "claim", "settings", "--once", "--root", str(data_root)]
        )
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["state"] == "held_by_other"
        assert data["holders"][0]["device_name"] == "alice-imac"

    def test_stale_holder_is_taken_over(
        self, runner: CliRunner, data_root: Path, session_a: SessionIdentity
    ) -> None:
        long_ago = datetime.now(UTC) - timedelta(hours=1)
        upsert_lock(data_root, "settings", session_a, now=long_ago)
        result = runner.invoke(app, ["claim", "settings", "--once", "--root", str(data_root)])
        assert result.exit_code == 0
        stored = read_lock(data_root, "settings")
        assert stored is not None
        assert stored.session_id != session_a.session_id

    def test_write_failure_exit_code(self, runner: CliRunner, data_root: Path) -> None:
        with mock.patch.object(LockStore, "write", side_effect=OSError("read-only")):
            result = runner.invoke(
                app, ["claim", "settings", "--once", "--root", str(data_root)]
            )
        assert result.exit_code == 2
        assert "read-only" in result.stdout

    def test_hold_releases_when_done(self, runner: CliRunner, data_root: Path) -> None:
        result = runner.invoke(
            app, ["claim", "settings", "--duration", "0", "--root", str(data_root)]
        )
        assert result.exit_code == 0
        assert "Released settings" in result.stdout
        assert read_lock(data_root, "settings") is None

    def test_item_held_by_other_warns(
        self, runner: CliRunner, data_root: Path, session_a: SessionIdentity
    ) -> None:
        upsert_lock(data_root, item_key("a.jpg"), session_a)
        result = runner.invoke(app, ["claim", "--item", "a.jpg", "--root", str(data_root)])
        assert result.exit_code == 0
        assert "may also be editing" in result.stdout
        stored = read_lock(data_root, item_key("a.jpg"))
        assert stored is not None
        assert stored.session_id == session_a.session_id

    def test_invalid_key(self, runner: CliRunner, data_root: Path) -> None:
        result = runner.invoke(app, ["claim", "people:bob", "--once", "--root", str(data_root)])
        assert result.exit_code == 3
        assert "Unknown resource key" in result.stdout

    def test_key_and_item_conflict(self, runner: CliRunner, data_root: Path) -> None:
        result = runner.invoke(
            app, ["claim", "settings", "--item", "a.jpg", "--once", "--root", str(data_root)]
        )
        assert result.exit_code == 3


class TestReleaseCommand:
    """Tests for softlock release."""

    def test_release_other_holder(
        self, runner: CliRunner, data_root: Path, session_a: SessionIdentity
    ) -> None:
        upsert_lock(data_root, "settings", session_a)
        result = runner.invoke(app, ["release", "settings", "--root", str(data_root)])
        assert result.exit_code == 0
        assert "Alice Example" in result.stdout
        assert read_lock(data_root, "settings") is None

    def test_release_unlocked(self, runner: CliRunner, data_root: Path) -> None:
        result = runner.invoke(app, ["--json", "release", "settings", "--root", str(data_root)])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["released"] is False


class TestStatusAndPrune:
    """Tests for softlock status and prune."""

    def test_status_empty(self, runner: CliRunner, data_root: Path) -> None:
        result = runner.invoke(app, ["status", "--root", str(data_root)])
        assert result.exit_code == 0
        assert "No locks held" in result.stdout

    def test_status_lists_locks(
        self,
        runner: CliRunner,
        data_root: Path,
        session_a: SessionIdentity,
        session_b: SessionIdentity,
    ) -> None:
        upsert_lock(data_root, "settings", session_a)
        upsert_lock(
            data_root,
            item_key("a.jpg"),
            session_b,
            now=datetime.now(UTC) - timedelta(hours=1),
        )
        result = runner.invoke(app, ["--json", "status", "--root", str(data_root)])
        assert result.exit_code == 0
        locks = {e["resource_key"]: e for e in json.loads(result.stdout)["locks"]}
        assert locks["settings"]["state"] == "held_by_other"
        assert locks["photo:a.jpg"]["state"] == "stale"

    def test_status_single_key(self, runner: CliRunner, data_root: Path) -> None:
        result = runner.invoke(
            app, ["--json", "status", "--item", "a.jpg", "--root", str(data_root)]
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout)["state"] == "unclaimed"

    def test_status_read_timeout(self, runner: CliRunner, data_root: Path) -> None:
        with mock.patch.object(LockStore, "read", side_effect=TimeoutError()):
            result = runner.invoke(app, ["status", "settings", "--root", str(data_root)])
        assert result.exit_code == 4
        assert "Timed out" in result.stdout

    def test_status_skips_garbled_record(
        self, runner: CliRunner, data_root: Path, session_a: SessionIdentity
    ) -> None:
        upsert_lock(data_root, "settings", session_a)
        store = LockStore(data_root)
        store.path_for(item_key("a.jpg")).write_bytes(b"\xff\xfe\x80garbage")
        result = runner.invoke(app, ["--json", "status", "--root", str(data_root)])
        assert result.exit_code == 0
        keys = [e["resource_key"] for e in json.loads(result.stdout)["locks"]]
        assert keys == ["settings"]

    def test_prune_all(
        self,
        runner: CliRunner,
        data_root: Path,
        session_a: SessionIdentity,
        session_b: SessionIdentity,
    ) -> None:
        upsert_lock(data_root, "settings", session_a)
        upsert_lock(
            data_root,
            item_key("a.jpg"),
            session_b,
            now=datetime.now(UTC) - timedelta(hours=1),
        )
        result = runner.invoke(app, ["--json", "prune", "--root", str(data_root)])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data == {"checked": 2, "pruned": ["photo:a.jpg"]}
        assert read_lock(data_root, "settings") is not None
        assert read_lock(data_root, item_key("a.jpg")) is None

    def test_invalid_config_is_usage_error(self, runner: CliRunner, data_root: Path) -> None:
        path = get_config_path(data_root)
        path.parent.mkdir(parents=True)
        path.write_text("[locks]\nheartbeat_interval_seconds = 600\n")
        result = runner.invoke(app, ["status", "--root", str(data_root)])
        assert result.exit_code == 3
        assert "Invalid config" in result.stdout
