"""Unit tests for formatting helpers."""

from io import StringIO
from unittest.mock import patch

from aps.core.theme import get_theme
from aps.utils.formatting import print_error, print_info, print_warning, short_commit
from rich.console import Console


def _buffer_console() -> tuple[Console, StringIO]:
    buf = StringIO()
    return Console(theme=get_theme(), file=buf, color_system=None, width=200), buf


class TestShortCommit:
    """Tests for short_commit function."""

    def test_abbreviates(self) -> None:
        assert short_commit("0123456789abcdef") == "01234567"

    def test_missing(self) -> None:
        assert short_commit(None) == "-"
        assert short_commit("") == "-"


class TestPrintHelpers:
    """Tests for the print_* helpers."""

    def test_info_goes_to_stdout_console(self) -> None:
        out, buf = _buffer_console()
        with patch("aps.utils.formatting.console", out):
            print_info("Validating 2 entries")
        assert buf.getvalue() == "Validating 2 entries\n"

    def test_warning_and_error_prefixed(self) -> None:
        err, buf = _buffer_console()
        with patch("aps.utils.formatting.err_console", err):
            print_warning("lockfile is stale")
            print_error("agents: source missing")
        assert buf.getvalue().splitlines() == [
            "Warning: lockfile is stale",
            "Error: agents: source missing",
        ]
