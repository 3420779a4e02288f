"""Tests for the CLI commands."""

import json
import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from conftest import build_archive

from cfgaudit.cli import app

runner = CliRunner()


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch) -> Path:
    """A cwd with checkpoints, pre-extracted archives, and an archive_dir config."""
    checkpoints = tmp_path / "checkpoints"
    archives = tmp_path / "archives"
    checkpoints.mkdir()
    archives.mkdir()
    for name, user in (("Delta-1000", "alice"), ("Delta-2000", "bob")):
        (checkpoints / name).mkdir()
        (archives / f"{name}.zip").write_bytes(build_archive({
            "user.id": user,
            "before/cell.xml": "a\nb\n",
            "after/cell.xml": "a\nc\n",
        }))
    (tmp_path / "cfgaudit.toml").write_text(
        "[checkpoints]\n"
        f'directory = "{checkpoints.as_posix()}"\n'
        "[audit]\n"
        f'log_path = "{(tmp_path / "audit.log").as_posix()}"\n'
        f'cursor_path = "{(tmp_path / "cursor").as_posix()}"\n'
        "[extractor]\n"
        'kind = "archive_dir"\n'
        f'archive_dir = "{archives.as_posix()}"\n'
        "[logging]\n"
        'level = "error"\n'
    )
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CFGAUDIT_USER", raising=False)
    monkeypatch.delenv("CFGAUDIT_PASSWORD", raising=False)
    return tmp_path


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "cfgaudit" in result.output


class TestInit:
    def test_creates_config(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert (tmp_path / "cfgaudit.toml").exists()

    def test_refuses_overwrite(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "cfgaudit.toml").write_text("existing")
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 1
        assert (tmp_path / "cfgaudit.toml").read_text() == "existing"


class TestRun:
    def test_writes_log_and_advances_cursor(self, workspace: Path):
        result = runner.invoke(app, ["run"])
        assert result.exit_code == 0
        log_text = (workspace / "audit.log").read_text()
        assert "User: alice" in log_text
        assert "User: bob" in log_text
        assert (workspace / "cursor").read_text().strip() == "2000"

    def test_second_run_records_nothing(self, workspace: Path):
        runner.invoke(app, ["run"])
        before = (workspace / "audit.log").read_text()
        result = runner.invoke(app, ["run"])
        assert result.exit_code == 0
        assert (workspace / "audit.log").read_text() == before

    def test_json_format(self, workspace: Path):
        result = runner.invoke(app, ["run", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["cursor"] == 2000
        assert data["previous_cursor"] == 0
        assert data["total_entries"] == 2
        assert {e["user"] for e in data["entries"]} == {"alice", "bob"}
        assert data["entries"][0]["change_type"] == "MODIFIED"

    def test_invalid_format(self, workspace: Path):
        result = runner.invoke(app, ["run", "--format", "sarif"])
        assert result.exit_code == 2

    def test_refuses_while_watcher_running(self, workspace: Path):
        # the parent process is alive and is not this process
        (workspace / ".cfgaudit.pid").write_text(f"{os.getppid()}\n")
        result = runner.invoke(app, ["run"])
        assert result.exit_code == 2
        assert "watcher is running" in result.output
        assert not (workspace / "audit.log").exists()

    def test_stale_watcher_pid_ignored(self, workspace: Path):
        (workspace / ".cfgaudit.pid").write_text("999999999\n")
        result = runner.invoke(app, ["run"])
        assert result.exit_code == 0
        assert (workspace / "audit.log").exists()

    def test_write_failure_exits_one(self, workspace: Path):
        (workspace / "audit.log").mkdir()
        result = runner.invoke(app, ["run"])
        assert result.exit_code == 1
        assert not (workspace / "cursor").exists()

    def test_config_error_exits_two(self, workspace: Path):
        (workspace / "cfgaudit.toml").write_text('[schedule]\nmode = "whenever"\n')
        result = runner.invoke(app, ["run"])
        assert result.exit_code == 2

    def test_wsadmin_requires_credentials(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("CFGAUDIT_USER", raising=False)
        monkeypatch.delenv("CFGAUDIT_PASSWORD", raising=False)
        result = runner.invoke(app, ["run"])
        assert result.exit_code == 2
        assert "credentials" in result.output


class TestWatch:
    def test_single_run_then_exit(self, workspace: Path):
        result = runner.invoke(app, ["watch", "--max-runs", "1"])
        assert result.exit_code == 0
        assert "User: alice" in (workspace / "audit.log").read_text()
        assert not (workspace / ".cfgaudit.pid").exists()

    def test_refuses_when_already_running(self, workspace: Path):
        # the parent process is alive and is not this process
        (workspace / ".cfgaudit.pid").write_text(f"{os.getppid()}\n")
        result = runner.invoke(app, ["watch", "--max-runs", "1"])
        assert result.exit_code == 2
        assert not (workspace / "audit.log").exists()


class TestStatusStop:
    def test_status_not_running(self, workspace: Path):
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 1
        assert "NOT running" in result.output
        assert "Pending" in result.output

    def test_stop_without_pid_file(self, workspace: Path):
        result = runner.invoke(app, ["stop"])
        assert result.exit_code == 1

    def test_stop_removes_stale_pid_file(self, workspace: Path):
        (workspace / ".cfgaudit.pid").write_text("999999999\n")
        result = runner.invoke(app, ["stop"])
        assert result.exit_code == 0
        assert not (workspace / ".cfgaudit.pid").exists()
