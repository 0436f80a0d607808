"""Tests for the podium command line."""

import tempfile
from pathlib import Path

import yaml
from click.testing import CliRunner

from podium.cli import main
from podium.registry.store import RegistryStore


def _invoke(registry_dir: str, *args: str, caller: str | None = None):
    """Run a command; only commands that take --caller get one."""
    options = ["-r", registry_dir]
    if caller is not None:
        options += ["-c", caller]
    runner = CliRunner()
    return runner.invoke(main, [*args, *options])


def test_init_register_and_show():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _invoke(tmpdir, "init", caller="root")
        assert result.exit_code == 0, result.output
        assert "root" in result.output

        result = _invoke(tmpdir, "register", "Alice", "Running", "30", "--country", "Kenya", caller="alice")
        assert result.exit_code == 0, result.output
        assert "Registered athlete 1" in result.output

        result = _invoke(tmpdir, "show", "1")
        assert result.exit_code == 0, result.output
        assert "Alice" in result.output
        assert "Kenya" in result.output


def test_full_workflow_persists_between_invocations():
    with tempfile.TemporaryDirectory() as tmpdir:
        _invoke(tmpdir, "init", caller="root")
        _invoke(tmpdir, "register", "Alice", "Running", "30", caller="alice")

        result = _invoke(tmpdir, "add-achievement", "1", "5k PB", "-d", "sub-15min", caller="alice")
        assert result.exit_code == 0, result.output
        assert "1/1" in result.output

        assert _invoke(tmpdir, "verify", "1", "1", caller="root").exit_code == 0
        assert _invoke(tmpdir, "verify", "1", caller="root").exit_code == 0

        reg = RegistryStore(tmpdir).open()
        assert reg.get_achievement(1, 1).is_verified
        assert reg.get_athlete_details(1).is_verified


def test_total_and_whoami():
    with tempfile.TemporaryDirectory() as tmpdir:
        _invoke(tmpdir, "init", caller="root")
        _invoke(tmpdir, "register", "Alice", "Running", "30", caller="alice")
        _invoke(tmpdir, "register", "Bob", "Swimming", "25", caller="bob")

        assert _invoke(tmpdir, "total").output.strip() == "2"
        assert _invoke(tmpdir, "whoami", caller="bob").output.strip() == "2"
        assert _invoke(tmpdir, "whoami", caller="carol").output.strip() == "0"


def test_registry_errors_exit_nonzero():
    with tempfile.TemporaryDirectory() as tmpdir:
        _invoke(tmpdir, "init", caller="root")

        result = _invoke(tmpdir, "register", "Alice", "Running", "100", caller="alice")
        assert result.exit_code == 1
        assert "InvalidAge" in result.output

        _invoke(tmpdir, "register", "Alice", "Running", "30", caller="alice")
        result = _invoke(tmpdir, "verify", "1", caller="alice")
        assert result.exit_code == 1
        assert "Unauthorized" in result.output

        result = _invoke(tmpdir, "achievement", "1", "3")
        assert result.exit_code == 1
        assert "AchievementNotFound" in result.output


def test_commands_require_init():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _invoke(tmpdir, "list")
        assert result.exit_code == 1
        assert "RegistryNotInitialized" in result.output


def test_list_and_events():
    with tempfile.TemporaryDirectory() as tmpdir:
        _invoke(tmpdir, "init", caller="root")
        assert "Registry is empty" in _invoke(tmpdir, "list").output

        _invoke(tmpdir, "register", "Alice", "Running", "30", caller="alice")
        result = _invoke(tmpdir, "list")
        assert "Alice" in result.output

        result = _invoke(tmpdir, "events")
        assert result.exit_code == 0, result.output
        assert "AthleteRegistered" in result.output


def test_seed_command():
    with tempfile.TemporaryDirectory() as tmpdir:
        registry_dir = str(Path(tmpdir) / "registry")
        roster = Path(tmpdir) / "roster.yaml"
        roster.write_text(
            yaml.dump(
                {
                    "athletes": [
                        {
                            "caller": "alice",
                            "name": "Alice",
                            "sport": "Running",
                            "age": 30,
                            "achievements": [{"title": "5k PB", "verified": True}],
                        }
                    ]
                }
            )
        )
        _invoke(registry_dir, "init", caller="root")

        result = _invoke(registry_dir, "seed", str(roster), caller="root")
        assert result.exit_code == 0, result.output
        assert "Registered: 1" in result.output

        reg = RegistryStore(registry_dir).open()
        assert reg.get_achievement(1, 1).is_verified
