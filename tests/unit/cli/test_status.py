"""Tests for `codescout status` and the version surfaces."""

from __future__ import annotations

from typer.testing import CliRunner

from codescout.cli.main import app

runner = CliRunner()


def test_version_flag_exits_zero() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "codescout" in result.output


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.output.startswith("codescout ")


def test_status_without_index(project, db_path):
    result = runner.invoke(app, ["status", "--root", str(project), "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    assert "No index yet" in result.output
    assert not db_path.exists()


def test_status_after_index(project, db_path, backend):
    (project / "a.py").write_text("a = 1\n", encoding="utf-8")
    (project / "b.py").write_text("b = 2\n", encoding="utf-8")
    runner.invoke(app, ["index", "--root", str(project), "--db", str(db_path)])

    result = runner.invoke(app, ["status", "--root", str(project), "--db", str(db_path)])

    assert result.exit_code == 0, result.output
    assert "Files: 2" in result.output
    assert "Embeddings: 3" in result.output
    assert "ollama/nomic-embed-text" in result.output
