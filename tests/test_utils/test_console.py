from __future__ import annotations

import json
import sys
from typing import Iterator
from unittest.mock import patch

import pytest
from rich.console import Console

from cygpkg.models import TransferState
from cygpkg.utils.console import (
    CYGPKG_THEME,
    _get_console,
    _should_use_color,
    colorize_transfer_state,
    print_error,
    print_json,
    print_lines,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)

# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove environment variables that influence color detection."""
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("CI", raising=False)


@pytest.fixture
def mock_tty(clean_env: None) -> Iterator[None]:
    with patch.object(sys.stdout, "isatty", return_value=True):
        yield


# ==============================================================================
# Console lifecycle
# ==============================================================================


@pytest.mark.unit
class TestShouldUseColor:
    """Tests for _should_use_color."""

    def test_no_color_disables(self, monkeypatch: pytest.MonkeyPatch, mock_tty: None) -> None:
        monkeypatch.setenv("NO_COLOR", "1")

        assert _should_use_color() is False

    def test_ci_disables(self, monkeypatch: pytest.MonkeyPatch, mock_tty: None) -> None:
        monkeypatch.setenv("CI", "true")

        assert _should_use_color() is False

    def test_tty_enables(self, mock_tty: None) -> None:
        assert _should_use_color() is True

    def test_isatty_error(self, clean_env: None) -> None:
        with patch.object(sys.stdout, "isatty", side_effect=OSError):
            assert _should_use_color() is False


@pytest.mark.unit
class TestGetConsole:
    """Tests for the console singleton."""

    def test_singleton(self) -> None:
        console = _get_console()

        assert isinstance(console, Console)

    def test_reconfigure_creates_new_instance(self) -> None:
        first = _get_console()
        reconfigure_console()

        assert _get_console() is not first

    def test_theme_covers_every_transfer_state(self) -> None:
        for state in TransferState:
            assert "state." + state.value.lower().replace(" ", "_") in CYGPKG_THEME.styles

    def test_state_markup_renders_plain_without_color(
        self, capsys: pytest.CaptureFixture
    ) -> None:
        _get_console().print(colorize_transfer_state("Not Found"))

        assert capsys.readouterr().out.strip() == "Not Found"


# ==============================================================================
# Output helpers
# ==============================================================================


@pytest.mark.unit
class TestStatusMessages:
    """Tests for the print_* status helpers."""

    @pytest.mark.parametrize(
        "func,prefix,style",
        [
            (print_success, "[OK]", "success"),
            (print_error, "[ERROR]", "error"),
            (print_warning, "[WARNING]", "warning"),
        ],
    )
    def test_prefix_and_style(self, func, prefix: str, style: str) -> None:
        with patch.object(Console, "print") as mock_print:
            func("Mirror selected")

        mock_print.assert_called_once_with(f"{prefix} Mirror selected", style=style)

    def test_custom_prefix(self) -> None:
        with patch.object(Console, "print") as mock_print:
            print_warning("slow mirror", prefix="!")

        mock_print.assert_called_once_with("! slow mirror", style="warning")


@pytest.mark.unit
class TestPrintTable:
    """Tests for print_table."""

    def test_renders_rows(self, capsys: pytest.CaptureFixture) -> None:
        print_table(
            [{"Package": "bash", "Version": "5.2.21-1"}, {"Package": "dash", "Version": "0.5.12-1"}],
            title="2 package(s)",
        )

        out = capsys.readouterr().out
        assert "2 package(s)" in out
        assert "bash" in out
        assert "0.5.12-1" in out

    def test_empty_data_prints_nothing(self) -> None:
        with patch.object(Console, "print") as mock_print:
            print_table([])

        mock_print.assert_not_called()

    def test_explicit_headers_and_missing_values(self, capsys: pytest.CaptureFixture) -> None:
        print_table([{"Package": "bash"}], headers=["Package", "State"])

        out = capsys.readouterr().out
        assert "State" in out
        assert "bash" in out


@pytest.mark.unit
class TestPlainOutput:
    """Tests for print_json and print_lines."""

    def test_print_json_round_trips(self, capsys: pytest.CaptureFixture) -> None:
        print_json({"packages": [{"name": "[bold]x[/bold]", "size": 3}]})

        assert json.loads(capsys.readouterr().out) == {
            "packages": [{"name": "[bold]x[/bold]", "size": 3}]
        }

    def test_print_json_stringifies_unknown_types(self, capsys: pytest.CaptureFixture) -> None:
        from pathlib import Path

        print_json({"manifest": Path("setup.ini")})

        assert json.loads(capsys.readouterr().out) == {"manifest": "setup.ini"}

    def test_print_lines_ignores_markup(self, capsys: pytest.CaptureFixture) -> None:
        print_lines(["perl-[test] 1.0-1", "bash 5.2-1"])

        assert capsys.readouterr().out.splitlines() == ["perl-[test] 1.0-1", "bash 5.2-1"]


@pytest.mark.unit
class TestColorizeTransferState:
    """Tests for colorize_transfer_state."""

    @pytest.mark.parametrize(
        "state,expected",
        [
            ("New", "[state.new]New[/state.new]"),
            ("Unchanged", "[state.unchanged]Unchanged[/state.unchanged]"),
            ("Older", "[state.older]Older[/state.older]"),
            ("Not Found", "[state.not_found]Not Found[/state.not_found]"),
            ("Error", "[state.error]Error[/state.error]"),
        ],
    )
    def test_known_states(self, state: str, expected: str) -> None:
        assert colorize_transfer_state(state) == expected

    def test_unknown_state_is_unchanged(self) -> None:
        assert colorize_transfer_state("Pending") == "Pending"

    @pytest.mark.parametrize("state", [None, ""])
    def test_empty(self, state) -> None:
        assert colorize_transfer_state(state) == ""
