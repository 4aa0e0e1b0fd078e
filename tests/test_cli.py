"""Tests for the command-line interface."""

import logging

import pytest
import structlog
from typer.testing import CliRunner

from callgaps.cli import app

runner = CliRunner()

CSV = (
    "Date,Full name,User,From,To,Call Duration In Seconds,Call Type\n"
    "2025-03-09 09:00:00,Jane,Alice,5550001,5550002,60,Outbound\n"
    "2025-03-10 09:00:00,Jane,Alice,5550001,5550002,600,Outbound\n"
)


@pytest.fixture
def env(tmp_path, monkeypatch):
    monkeypatch.setenv("CALLGAPS_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("CALLGAPS_OUTPUT_DIR", str(tmp_path / "out"))
    monkeypatch.setenv("CALLGAPS_DATABASE_PATH", str(tmp_path / "db" / "gaps.db"))
    csv_path = tmp_path / "calls.csv"
    csv_path.write_text(CSV, encoding="utf-8")
    yield tmp_path, csv_path

    # commands configure logging against the runner's streams
    for handler in list(logging.getLogger().handlers):
        logging.getLogger().removeHandler(handler)
    structlog.reset_defaults()


def test_dates(env):
    _, csv_path = env
    result = runner.invoke(app, ["dates", str(csv_path)])
    assert result.exit_code == 0
    assert result.output.splitlines()[:2] == ["2025-03-10", "2025-03-09"]


def test_gaps_with_export(env):
    tmp_path, csv_path = env
    result = runner.invoke(app, ["gaps", str(csv_path), "--threshold", "30", "--export"])
    assert result.exit_code == 0, result.output
    assert "Alice" in result.output
    exported = sorted(p.name.split("_")[0] for p in (tmp_path / "out").iterdir())
    assert exported == ["agent", "call"]


def test_gaps_unsupported_file(env):
    tmp_path, _ = env
    bad = tmp_path / "calls.pdf"
    bad.write_bytes(b"%PDF")
    result = runner.invoke(app, ["gaps", str(bad)])
    assert result.exit_code == 1
    assert "Unrecognized file format" in result.output


def test_gaps_bad_office_hours(env):
    _, csv_path = env
    result = runner.invoke(app, ["gaps", str(csv_path), "--start", "18:00", "--end", "08:00"])
    assert result.exit_code != 0


def test_save_history_replay(env):
    _, csv_path = env
    saved = runner.invoke(app, ["save", str(csv_path)])
    assert saved.exit_code == 0, saved.output
    assert "Saved upload #1" in saved.output

    listed = runner.invoke(app, ["history"])
    assert "calls.csv" in listed.output

    replayed = runner.invoke(app, ["replay", "1", "--date", "2025-03-09", "--start", "09:00"])
    assert replayed.exit_code == 0, replayed.output
    assert "2025-03-09" in replayed.output


def test_replay_unknown_upload(env):
    result = runner.invoke(app, ["replay", "42"])
    assert result.exit_code == 1
    assert "No records found" in result.output


def test_replay_date_without_calls(env):
    _, csv_path = env
    runner.invoke(app, ["save", str(csv_path)])
    result = runner.invoke(app, ["replay", "1", "--date", "2025-01-01"])
    assert result.exit_code == 0, result.output
    assert "2025-01-01" in result.output
    assert "Alice" not in result.output
