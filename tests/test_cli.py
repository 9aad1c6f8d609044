"""Smoke tests for the CLI."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from insightful import __version__
from insightful.cli import app


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path, monkeypatch) -> Path:
    """Config pinning the home directory, isolated from the real environment."""
    for key in ("INSIGHTFUL_CLAUDE_DIR", "INSIGHTFUL_OUTPUT", "INSIGHTFUL_HOME_DIR", "INSIGHTFUL_MAX_WORKERS"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "test.toml"
    path.write_text('[paths]\nhome_dir = "/nonexistent-home"\n')
    return path


class TestCLI:
    """Tests for the CLI entry point."""

    def test_main_help(self, runner: CliRunner) -> None:
        """Test that --help works on the main command."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "collect" in result.output

    def test_main_version(self, runner: CliRunner) -> None:
        """Test that --version works."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"insightful {__version__}" in result.output

    def test_collect_help(self, runner: CliRunner) -> None:
        """Test that collect --help documents its options."""
        result = runner.invoke(app, ["collect", "--help"])
        assert result.exit_code == 0
        for option in ("--claude-dir", "--output", "--workers", "--config"):
            assert option in result.output


class TestCollect:
    """Tests for the collect command."""

    def test_writes_report_and_prints_path(
        self, runner: CliRunner, claude_dir: Path, config_file: Path
    ) -> None:
        result = runner.invoke(
            app, ["collect", "--config", str(config_file), "--claude-dir", str(claude_dir)]
        )
        assert result.exit_code == 0, result.output

        written = claude_dir / "usage-data" / "insightful-data.json"
        assert str(written) in result.output.splitlines()
        data = json.loads(written.read_text())
        assert data["total_sessions_found"] == 4
        assert list(data["projects"]) == ["alpha", "beta", "unknown"]

    def test_output_option(
        self, runner: CliRunner, claude_dir: Path, config_file: Path, tmp_path: Path
    ) -> None:
        target = tmp_path / "reports" / "insights.json"
        result = runner.invoke(
            app,
            [
                "collect",
                "-c", str(config_file),
                "--claude-dir", str(claude_dir),
                "-o", str(target),
                "-w", "1",
            ],
        )
        assert result.exit_code == 0, result.output
        assert target.is_file()

    def test_no_print_path(
        self, runner: CliRunner, claude_dir: Path, config_file: Path, tmp_path: Path
    ) -> None:
        target = tmp_path / "insights.json"
        result = runner.invoke(
            app,
            [
                "collect",
                "-c", str(config_file),
                "--claude-dir", str(claude_dir),
                "-o", str(target),
                "--no-print-path",
            ],
        )
        assert result.exit_code == 0, result.output
        assert str(target) not in result.output.splitlines()
        assert target.is_file()

    def test_empty_claude_dir_still_writes(
        self, runner: CliRunner, config_file: Path, tmp_path: Path
    ) -> None:
        claude = tmp_path / "empty-claude"
        claude.mkdir()
        result = runner.invoke(
            app, ["collect", "-c", str(config_file), "--claude-dir", str(claude)]
        )
        assert result.exit_code == 0, result.output
        data = json.loads((claude / "usage-data" / "insightful-data.json").read_text())
        assert data["total_sessions_found"] == 0
        assert data["projects"] == {}

    def test_unwritable_output_exits_nonzero(
        self, runner: CliRunner, claude_dir: Path, config_file: Path, tmp_path: Path
    ) -> None:
        target = tmp_path / "taken"
        target.mkdir()
        result = runner.invoke(
            app,
            ["collect", "-c", str(config_file), "--claude-dir", str(claude_dir), "-o", str(target)],
        )
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_invalid_config_exits_nonzero(
        self, runner: CliRunner, claude_dir: Path, tmp_path: Path, monkeypatch
    ) -> None:
        monkeypatch.delenv("INSIGHTFUL_MAX_WORKERS", raising=False)
        bad = tmp_path / "bad.toml"
        bad.write_text("[collect]\nmax_workers = 0\n")
        result = runner.invoke(
            app, ["collect", "-c", str(bad), "--claude-dir", str(claude_dir)]
        )
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_zero_workers_rejected(self, runner: CliRunner, claude_dir: Path) -> None:
        result = runner.invoke(app, ["collect", "--claude-dir", str(claude_dir), "-w", "0"])
        assert result.exit_code == 2
