"""Unit tests for the top-level CLI application."""

import logging
from pathlib import Path
from unittest.mock import patch

from aps import __version__
from aps.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


class TestMainApp:
    """Tests for global options."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"aps version {__version__}" in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("init", "sync", "status", "validate"):
            assert command in result.output

    def test_verbose_enables_debug_logging(self, tmp_path: Path) -> None:
        """--verbose configures debug logging before the sub-command runs."""
        with patch("aps.cli.main.logging.basicConfig") as basic_config:
            runner.invoke(app, ["--verbose", "status", "--manifest", str(tmp_path / "aps.toml")])

        basic_config.assert_called_once()
        assert basic_config.call_args.kwargs["level"] == logging.DEBUG

    def test_logging_untouched_by_default(self, tmp_path: Path) -> None:
        with patch("aps.cli.main.logging.basicConfig") as basic_config:
            runner.invoke(app, ["status", "--manifest", str(tmp_path / "aps.toml")])

        basic_config.assert_not_called()
