"""CLI tests for the storage commands."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from safe_session_storage.cli.storage import app

runner = CliRunner()


def test_write_then_read(tmp_path: Path) -> None:
    target = tmp_path / "notes.txt"

    result = runner.invoke(app, ["write", str(target), "--content", "hello"])
    assert result.exit_code == 0
    assert "Wrote" in result.stdout

    result = runner.invoke(app, ["read", str(target)])
    assert result.exit_code == 0
    assert result.stdout == "hello"


def test_write_from_stdin_without_history(tmp_path: Path) -> None:
    target = tmp_path / "notes.txt"

    result = runner.invoke(app, ["write", str(target), "--no-history"], input="piped")

    assert result.exit_code == 0
    assert target.read_text() == "piped"
    assert list((tmp_path / "Temp").iterdir()) == []


def test_read_missing_file_fails(tmp_path: Path) -> None:
    result = runner.invoke(app, ["read", str(tmp_path / "missing.txt")])

    assert result.exit_code == 1


def test_list_json(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("x")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b.log").write_text("y")

    result = runner.invoke(app, ["list", str(tmp_path), "--json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert {Path(item["path"]).name for item in payload} == {"a.txt", "b.log"}
    assert {item["extension"] for item in payload} == {"TXT", "LOG"}


def test_list_table(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("x")

    result = runner.invoke(app, ["list", str(tmp_path)])

    assert result.exit_code == 0
    assert "1 files" in result.stdout


def test_history_json(tmp_path: Path) -> None:
    target = tmp_path / "notes.txt"
    runner.invoke(app, ["write", str(target), "--content", "one"])
    runner.invoke(app, ["write", str(target), "--content", "two"])

    result = runner.invoke(app, ["history", str(target), "--json"])

    assert result.exit_code == 0
    assert len(json.loads(result.stdout)) == 2
