from __future__ import annotations

import io
from typing import Generator
from unittest.mock import patch

import pytest
from rich.console import Console

from depgauge.utils import console as console_module
from depgauge.utils.console import (
    colorize_category,
    colorize_update_type,
    confirm,
    get_raw_console,
    print_error,
    print_suggestions,
    print_table,
    reconfigure_console,
)


@pytest.fixture(autouse=True)
def captured() -> Generator[io.StringIO, None, None]:
    """Route console output into a buffer."""
    buffer = io.StringIO()
    fake = Console(file=buffer, width=120, no_color=True, theme=console_module.DEPGAUGE_THEME)
    with patch.object(console_module, "_console", fake), patch.object(
        console_module, "_err_console", fake
    ):
        yield buffer
    reconfigure_console()


@pytest.mark.unit
class TestMessages:
    def test_print_error(self, captured: io.StringIO) -> None:
        print_error("No npm project found")

        assert "[ERROR] No npm project found" in captured.getvalue()

    def test_print_suggestions(self, captured: io.StringIO) -> None:
        print_suggestions(["Run npm install", "Check the path"])

        output = captured.getvalue()
        assert "Suggestions:" in output
        assert "Run npm install" in output and "Check the path" in output

    def test_no_suggestions_prints_nothing(self, captured: io.StringIO) -> None:
        print_suggestions([])

        assert captured.getvalue() == ""


@pytest.mark.unit
class TestPrintTable:
    def test_renders_rows(self, captured: io.StringIO) -> None:
        print_table(
            [{"Package": "react", "Latest": "18.3.1"}, {"Package": "lodash", "Latest": "4.17.21"}],
            title="Safe Updates",
        )

        output = captured.getvalue()
        assert "Safe Updates" in output
        assert "react" in output and "4.17.21" in output

    def test_empty_data(self, captured: io.StringIO) -> None:
        print_table([])

        assert captured.getvalue() == ""


@pytest.mark.unit
class TestConfirm:
    @pytest.mark.parametrize(
        "answer,default,expected",
        [("y", False, True), ("yes", False, True), ("n", True, False), ("", True, True), ("", False, False)],
    )
    def test_answers(self, answer: str, default: bool, expected: bool) -> None:
        with patch("builtins.input", return_value=answer):
            assert confirm("Update?", default=default) is expected

    def test_eof_is_no(self) -> None:
        with patch("builtins.input", side_effect=EOFError):
            assert confirm("Update?", default=True) is False


@pytest.mark.unit
class TestColorize:
    def test_update_type(self) -> None:
        assert colorize_update_type("major") == "[red]major[/red]"
        assert colorize_update_type("other") == "other"

    def test_category(self) -> None:
        assert colorize_category("majorJump") == "[yellow]majorJump[/yellow]"
        assert colorize_category("blocked") == "[red]blocked[/red]"


@pytest.mark.unit
class TestConsoleLifecycle:
    def test_reconfigure_creates_new_console(self) -> None:
        first = get_raw_console()
        reconfigure_console()

        assert get_raw_console() is not first
