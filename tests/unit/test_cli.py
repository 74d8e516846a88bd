"""Tests for the command line interface."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from cachespine import __version__
from cachespine.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def memory_engine(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Point the CLI at the in-memory engine."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CACHESPINE_ENGINE", "none")
    monkeypatch.setenv("CACHESPINE_NAMESPACE", "cli")
    monkeypatch.delenv("CACHESPINE_CONSISTENT_BEHAVIOR", raising=False)


class TestCli:
    """Tests for cachespine commands."""

    def test_version(self) -> None:
        """version prints the package version."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_info(self) -> None:
        """info shows engine, mode and fingerprint."""
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "Engine: none" in result.output
        assert "Mode: strict" in result.output
        assert "none-true-cli" in result.output

    def test_check_memory(self) -> None:
        """Round trip against memory succeeds."""
        result = runner.invoke(app, ["check"])

        assert result.exit_code == 0
        assert "delete" in result.output

    def test_check_configuration_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Missing connection parameters exit with 1."""
        monkeypatch.setenv("CACHESPINE_ENGINE", "memcached")
        monkeypatch.delenv("CACHESPINE_SERVERS", raising=False)

        result = runner.invoke(app, ["check"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output

    @pytest.mark.parametrize("command", ["info", "check"])
    def test_invalid_setting_exits_cleanly(self, monkeypatch: pytest.MonkeyPatch, command: str) -> None:
        """Settings that fail validation exit with 1 instead of a traceback."""
        monkeypatch.setenv("CACHESPINE_ENGINE", "foo")

        result = runner.invoke(app, [command])

        assert result.exit_code == 1
        assert "Configuration error" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)
