"""Tests for the creatorpage CLI via CliRunner.

Commands run against a temporary home with no remote configured, so
snapshots come from the local cache unless a test substitutes a remote.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from creatorpage.auth import compute_digest
from creatorpage.cli import main
from creatorpage.cli._common import format_number
from creatorpage.config import CONFIG_FILE
from creatorpage.defaults import ADMIN_SALT, DEFAULT_DATA
from creatorpage.sync.cache import LocalCache
from creatorpage.sync.remote import MemoryRemoteStore

SECRET = "open-sesame"


@pytest.fixture(autouse=True)
def _no_remote_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CREATORPAGE_API_KEY", raising=False)
    monkeypatch.delenv("CREATORPAGE_DATABASE_URL", raising=False)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def admin_home(home: Path) -> Path:
    """A home whose admin digest matches SECRET."""
    (home / CONFIG_FILE).write_text(yaml.dump({
        "admin": {"salt": ADMIN_SALT, "digest": compute_digest(SECRET, ADMIN_SALT)},
    }))
    return home


def _cached(home: Path):
    return LocalCache(home / "cache").load()


class TestFormatNumber:
    """Compact audience counts."""

    @pytest.mark.parametrize("value,expected", [
        (1_200_000, "1.2M"),
        (12_500, "12.5K"),
        (999, "999"),
        (float("nan"), "0"),
    ])
    def test_format(self, value, expected):
        assert format_number(value) == expected


class TestReadCommands:
    """show, status, init, digest."""

    def test_help(self, runner: CliRunner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("show", "watch", "status", "init", "digest", "add", "delete", "reset"):
            assert command in result.output

    def test_digest(self, runner: CliRunner, home: Path):
        result = runner.invoke(main, ["digest", "abc", "--salt", "", "--home", str(home)])
        assert result.exit_code == 0
        assert result.output.strip() == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    def test_digest_uses_configured_salt(self, runner: CliRunner, home: Path):
        result = runner.invoke(main, ["digest", "abc", "--home", str(home)])
        assert result.output.strip() == compute_digest("abc", ADMIN_SALT)

    def test_init_writes_template_once(self, runner: CliRunner, home: Path):
        first = runner.invoke(main, ["init", "--home", str(home)])
        assert first.exit_code == 0
        assert (home / CONFIG_FILE).exists()

        second = runner.invoke(main, ["init", "--home", str(home)])
        assert second.exit_code == 1
        assert "already exists" in second.output

        forced = runner.invoke(main, ["init", "--home", str(home), "--force"])
        assert forced.exit_code == 0

    def test_status_without_cache(self, runner: CliRunner, home: Path):
        result = runner.invoke(main, ["status", "--home", str(home)])
        assert result.exit_code == 0
        assert "not configured" in result.output
        assert "no snapshot" in result.output

    def test_show_json_defaults(self, runner: CliRunner, home: Path):
        result = runner.invoke(main, ["show", "--json-out", "--home", str(home)])
        assert result.exit_code == 0
        assert json.loads(result.output) == DEFAULT_DATA.to_wire()

    def test_show_renders_tables(self, runner: CliRunner, home: Path):
        result = runner.invoke(main, ["show", "--home", str(home)])
        assert result.exit_code == 0
        assert DEFAULT_DATA.profile.name in result.output
        assert "Schedule" in result.output


class TestEditCommands:
    """Admin-only edits."""

    def test_wrong_password_is_denied(self, runner: CliRunner, admin_home: Path):
        result = runner.invoke(
            main, ["add", "gallery", "--home", str(admin_home), "--password", "guess"],
        )
        assert result.exit_code == 1
        assert "Wrong password!" in result.output
        assert not LocalCache(admin_home / "cache").exists()

    def test_show_digest_on_denial(self, runner: CliRunner, admin_home: Path):
        result = runner.invoke(
            main,
            ["add", "gallery", "--home", str(admin_home), "--password", "guess", "--show-digest"],
        )
        assert result.exit_code == 1
        assert compute_digest("guess", ADMIN_SALT) in result.output

    def test_add_gallery_item(self, runner: CliRunner, admin_home: Path):
        result = runner.invoke(
            main, ["add", "gallery", "--home", str(admin_home), "--password", SECRET],
        )
        assert result.exit_code == 0, result.output
        gallery = _cached(admin_home).gallery
        assert len(gallery) == len(DEFAULT_DATA.gallery) + 1
        assert "?random=" in gallery[-1].src

    def test_delete_with_confirmation_flag(self, runner: CliRunner, admin_home: Path):
        result = runner.invoke(
            main,
            ["delete", "rank", "0", "--force", "--home", str(admin_home), "--password", SECRET],
        )
        assert result.exit_code == 0, result.output
        rank = _cached(admin_home).rank
        assert [item.id for item in rank] == [item.id for item in DEFAULT_DATA.rank[1:]]
        assert [item.rank for item in rank] == list(range(1, len(rank) + 1))

    def test_delete_out_of_range(self, runner: CliRunner, admin_home: Path):
        result = runner.invoke(
            main,
            ["delete", "gallery", "99", "--force", "--home", str(admin_home), "--password", SECRET],
        )
        assert result.exit_code == 1
        assert "Invalid edit" in result.output

    def test_set_record_field_by_wire_name(self, runner: CliRunner, admin_home: Path):
        result = runner.invoke(
            main,
            ["set", "profile", "youtubeUrl", "https://yt.example/c",
             "--home", str(admin_home), "--password", SECRET],
        )
        assert result.exit_code == 0, result.output
        assert _cached(admin_home).profile.youtube_url == "https://yt.example/c"

    def test_set_rejects_bad_value(self, runner: CliRunner, admin_home: Path):
        result = runner.invoke(
            main,
            ["set", "stats", "followers", "lots", "--home", str(admin_home), "--password", SECRET],
        )
        assert result.exit_code == 1
        assert "Invalid edit" in result.output

    def test_update_item(self, runner: CliRunner, admin_home: Path):
        result = runner.invoke(
            main,
            ["update", "schedule", "0", "activity", "Build night",
             "--home", str(admin_home), "--password", SECRET],
        )
        assert result.exit_code == 0, result.output
        assert _cached(admin_home).schedule[0].activity == "Build night"

    def test_reset_clears_cache(self, runner: CliRunner, admin_home: Path):
        runner.invoke(main, ["add", "gallery", "--home", str(admin_home), "--password", SECRET])
        result = runner.invoke(
            main, ["reset", "--force", "--home", str(admin_home), "--password", SECRET],
        )
        assert result.exit_code == 0, result.output
        assert not LocalCache(admin_home / "cache").exists()

    def test_update_unknown_field_is_rejected(self, runner: CliRunner, admin_home: Path):
        result = runner.invoke(
            main,
            ["update", "rank", "0", "nonsense", "x", "--home", str(admin_home), "--password", SECRET],
        )
        assert result.exit_code == 1
        assert "Invalid edit" in result.output
        assert not LocalCache(admin_home / "cache").exists()


class TestEditsWithRemote:
    """Edits wait for the remote value before touching anything."""

    def test_silent_remote_refuses_edit(
        self, runner: CliRunner, admin_home: Path, silent_remote, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setattr("creatorpage.page.create_remote_store", lambda config: silent_remote)
        monkeypatch.setattr("creatorpage.cli._common.EDIT_SYNC_TIMEOUT", 0.05)
        (admin_home / CONFIG_FILE).write_text(yaml.dump({
            "fallback_seconds": 0.01,
            "admin": {"salt": ADMIN_SALT, "digest": compute_digest(SECRET, ADMIN_SALT)},
        }))

        result = runner.invoke(
            main, ["add", "gallery", "--home", str(admin_home), "--password", SECRET],
        )

        assert result.exit_code == 1
        assert "did not answer" in result.output
        assert silent_remote.partial_writes == []
        assert not LocalCache(admin_home / "cache").exists()

    def test_synced_remote_receives_edit(
        self, runner: CliRunner, admin_home: Path, monkeypatch: pytest.MonkeyPatch
    ):
        remote = MemoryRemoteStore({"profile": {"name": "Remote"}})
        monkeypatch.setattr("creatorpage.page.create_remote_store", lambda config: remote)

        result = runner.invoke(
            main, ["add", "gallery", "--home", str(admin_home), "--password", SECRET],
        )

        assert result.exit_code == 0, result.output
        stored = remote.value
        assert stored["profile"]["name"] == "Remote"
        assert len(stored["gallery"]) == len(DEFAULT_DATA.gallery) + 1
