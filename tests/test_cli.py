from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
from loguru import logger
from typer.testing import CliRunner

from tellbot.cli.commands import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "irc": {"nick": "clibot", "channels": ["#test"]},
        "storage": {"dbPath": str(tmp_path / "cli.db")},
    }))
    return path


def test_onboard_creates_config_and_database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    path = tmp_path / "fresh" / "config.json"

    result = runner.invoke(app, ["onboard", "--config", str(path)])

    assert result.exit_code == 0
    assert path.exists()
    assert "Created config" in result.output
    assert (tmp_path / ".tellbot" / "tellbot.db").exists()


def test_say_echo(config_file: Path) -> None:
    result = runner.invoke(app, ["say", "--config", str(config_file), "--nick", "alice", ".echo foo bar"])

    assert result.exit_code == 0
    assert "alice said: foo bar" in result.output


def test_say_tell_then_delivery_uses_the_same_database(config_file: Path) -> None:
    told = runner.invoke(app, ["say", "-c", str(config_file), "-n", "alice", "-t", "#test", ".tell bob hi bob"])
    delivered = runner.invoke(app, ["say", "-c", str(config_file), "-n", "bob", "-t", "#test", "hello"])

    assert "alice: I'll pass that on when bob is around." in told.output
    assert 'bob: "hi bob" ~ alice [' in delivered.output


def test_status_reports_counts(config_file: Path) -> None:
    runner.invoke(app, ["say", "-c", str(config_file), "-n", "alice", ".tell bob hi"])

    result = runner.invoke(app, ["status", "--config", str(config_file)])

    assert result.exit_code == 0
    assert "Nick: clibot" in result.output
    assert ".tell <nick> <message>  leave a message for someone who is away" in result.output
    assert ".help  list available commands" in result.output
    assert "Activity records: 1" in result.output
    assert "Messages pending: 1" in result.output


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "tellbot v" in result.output
