"""
Console output utilities for depgauge using Rich.

This module provides user-facing output helpers for CLI commands.
For diagnostic or debug output, use :mod:`depgauge.utils.logger`.

Guidelines:
- print_* functions: user-facing status messages
- print_table / confirm: structured or interactive CLI output
- Logging should never go through this module
"""

from __future__ import annotations

import os
import sys
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence

from rich.table import Table
from rich.theme import Theme
from rich.console import Console

# ---------------------------------------------------------------------------
# Theme configuration
# ---------------------------------------------------------------------------

DEPGAUGE_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "dim": "dim",
        "highlight": "bold magenta",
    }
)

# ---------------------------------------------------------------------------
# Console lifecycle management
# ---------------------------------------------------------------------------

_console: Optional[Console] = None
_err_console: Optional[Console] = None
_console_lock = threading.Lock()


def _should_use_color(stream: Any) -> bool:
    """Return True if colored output should be enabled for ``stream``."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("CI"):
        return False
    try:
        return stream.isatty()
    except (AttributeError, OSError):
        return False


def _make_console(stderr: bool) -> Console:
    use_color = _should_use_color(sys.stderr if stderr else sys.stdout)
    return Console(
        theme=DEPGAUGE_THEME,
        no_color=not use_color,
        highlight=use_color,
        stderr=stderr,
    )


def _get_console() -> Console:
    """Return the singleton stdout Console."""
    global _console

    if _console is None:
        with _console_lock:
            if _console is None:
                _console = _make_console(stderr=False)
    return _console


def get_error_console() -> Console:
    """Return the singleton stderr Console (progress bars, prompts)."""
    global _err_console

    if _err_console is None:
        with _console_lock:
            if _err_console is None:
                _err_console = _make_console(stderr=True)
    return _err_console


def reconfigure_console() -> None:
    """Reset the console instances.

    Useful if environment variables (e.g. NO_COLOR) change at runtime.
    """
    global _console, _err_console
    with _console_lock:
        _console = None
        _err_console = None


# ---------------------------------------------------------------------------
# Status message helpers
# ---------------------------------------------------------------------------


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    """Print a success message."""
    _get_console().print(f"{prefix} {message}", style="success")


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    """Print an error message."""
    _get_console().print(f"{prefix} {message}", style="error")


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    """Print a warning message."""
    _get_console().print(f"{prefix} {message}", style="warning")


def print_info(message: str) -> None:
    """Print a neutral informational line."""
    _get_console().print(message, style="info")


def print_suggestions(suggestions: Sequence[str]) -> None:
    """Print remediation hints below an error message."""
    if not suggestions:
        return
    console = _get_console()
    console.print("Suggestions:", style="highlight")
    for suggestion in suggestions:
        console.print(f"  • {suggestion}", style="dim")


# ---------------------------------------------------------------------------
# Structured output
# ---------------------------------------------------------------------------


def print_table(
    data: List[Dict[str, Any]],
    *,
    headers: Optional[List[str]] = None,
    title: Optional[str] = None,
    caption: Optional[str] = None,
    column_styles: Optional[Dict[str, Dict[str, Any]]] = None,
    row_styler: Optional[Callable[[Dict[str, Any]], Optional[str]]] = None,
    show_row_lines: bool = False,
) -> None:
    """Render structured data as a Rich table.

    Args:
        data: List of row dictionaries.
        headers: Column order. Defaults to keys of the first row.
        title: Optional table title.
        caption: Optional table caption.
        column_styles: Per-column style configuration.
        row_styler: Optional callback returning a row style.
        show_row_lines: Whether to draw horizontal lines between rows.
    """
    if not data:
        return

    if headers is None:
        headers = list(data[0].keys())

    table = Table(
        title=title,
        caption=caption,
        show_header=True,
        header_style="bold",
        show_lines=show_row_lines,
    )

    column_styles = column_styles or {}
    for header in headers:
        config = column_styles.get(header, {})
        table.add_column(
            header,
            style=config.get("style"),
            justify=config.get("justify", "default"),
            no_wrap=config.get("no_wrap", False),
            width=config.get("width"),
            overflow=config.get("overflow", "fold"),
        )

    for row in data:
        values = [str(row.get(h, "")) for h in headers]
        style = row_styler(row) if row_styler else None
        table.add_row(*values, style=style)

    _get_console().print(table)


# ---------------------------------------------------------------------------
# User interaction
# ---------------------------------------------------------------------------


def confirm(message: str, *, default: bool = False) -> bool:
    """Prompt the user for a yes/no confirmation.

    "y"/"yes" return True, "n"/"no" return False, anything else (including
    empty input) returns ``default``; Ctrl+C and EOF return False.
    """
    console = get_error_console()
    suffix = " [Y/n]: " if default else " [y/N]: "
    console.print(f"{message}{suffix}", end="", style="info")

    try:
        response = input().strip().lower()
    except (KeyboardInterrupt, EOFError):
        console.print()
        return False

    if response in ("y", "yes"):
        return True
    if response in ("n", "no"):
        return False
    return default


# ---------------------------------------------------------------------------
# Advanced / internal helpers
# ---------------------------------------------------------------------------


def get_raw_console() -> Console:
    """Return the underlying stdout Console instance."""
    return _get_console()


_UPDATE_TYPE_COLORS = {
    "major": "red",
    "minor": "yellow",
    "patch": "green",
    "downgrade": "red",
}

_CATEGORY_COLORS = {
    "safe": "green",
    "major": "yellow",
    "majorjump": "yellow",
    "blocked": "red",
}


def colorize_update_type(update_type: str) -> str:
    """Return a Rich-markup colored update type label."""
    color = _UPDATE_TYPE_COLORS.get(update_type.lower())
    return f"[{color}]{update_type}[/{color}]" if color else update_type


def colorize_category(category: str) -> str:
    """Return a Rich-markup colored classification label."""
    color = _CATEGORY_COLORS.get(category.lower())
    return f"[{color}]{category}[/{color}]" if color else category
