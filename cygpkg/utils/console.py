"""
Terminal output for cygpkg commands.

Package tables, fetch results and status lines are printed here through one
shared Rich console. Diagnostics go through :mod:`cygpkg.utils.logger`
instead, so ``cygpkg list --format simple`` stays parseable at any
verbosity.
"""

from __future__ import annotations

import os
import json
import sys
import threading
from typing import Any, Dict, List, Optional

from rich.table import Table
from rich.theme import Theme
from rich.console import Console

# ---------------------------------------------------------------------------
# Theme
# ---------------------------------------------------------------------------

#: Named styles usable in markup (``[package]bash[/package]``) and in
#: ``print_table`` column styles. ``state.*`` follow TransferState values.
CYGPKG_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "package": "bold cyan",
        "state.new": "cyan",
        "state.unchanged": "green",
        "state.older": "yellow",
        "state.not_found": "red",
        "state.error": "red",
    }
)

# ---------------------------------------------------------------------------
# Shared console
# ---------------------------------------------------------------------------

_console: Optional[Console] = None
_console_lock = threading.Lock()


def _should_use_color() -> bool:
    """Color only on an interactive stdout, and never under NO_COLOR or CI."""
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, OSError):
        return False


def _get_console() -> Console:
    global _console

    with _console_lock:
        if _console is None:
            color = _should_use_color()
            _console = Console(theme=CYGPKG_THEME, no_color=not color, highlight=color)
        return _console


def reconfigure_console() -> None:
    """Drop the shared console so the next print re-reads the environment.

    The CLI calls this after ``--color/--no-color`` has updated ``NO_COLOR``.
    """
    global _console
    with _console_lock:
        _console = None


# ---------------------------------------------------------------------------
# Status lines
# ---------------------------------------------------------------------------


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    _get_console().print(f"{prefix} {message}", style="success")


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    _get_console().print(f"{prefix} {message}", style="error")


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    _get_console().print(f"{prefix} {message}", style="warning")


# ---------------------------------------------------------------------------
# Package listings
# ---------------------------------------------------------------------------


def print_table(
    rows: List[Dict[str, Any]],
    *,
    headers: Optional[List[str]] = None,
    title: Optional[str] = None,
    column_styles: Optional[Dict[str, Dict[str, Any]]] = None,
) -> None:
    """Print ``rows`` as a table, one row per package or file.

    Args:
        rows: Cell values keyed by column name. Missing cells print empty.
        headers: Column order; the first row's keys when omitted.
        title: Shown above the table (``"12 package(s)"``).
        column_styles: Per column, any of ``style``, ``justify``,
            ``no_wrap`` and ``width``.
    """
    if not rows:
        return

    columns = headers if headers is not None else list(rows[0])
    styles = column_styles or {}

    table = Table(title=title, header_style="bold")
    for column in columns:
        options = styles.get(column, {})
        table.add_column(
            column,
            style=options.get("style"),
            justify=options.get("justify", "default"),
            no_wrap=options.get("no_wrap", False),
            width=options.get("width"),
            overflow="fold",
        )

    for row in rows:
        table.add_row(*(str(row.get(column, "")) for column in columns))

    _get_console().print(table)


def print_json(data: Any) -> None:
    """Print ``data`` as indented JSON without markup processing."""
    _get_console().print_json(json.dumps(data, default=str))


def print_lines(lines: List[str]) -> None:
    """Print lines verbatim; package names like ``perl-[test]`` are not markup."""
    console = _get_console()
    for line in lines:
        console.print(line, markup=False, highlight=False)


def colorize_transfer_state(state: Optional[str]) -> str:
    """Wrap a TransferState value (``"Not Found"``) in its theme style markup.

    Unknown labels are returned as-is and ``None`` becomes ``""``.
    """
    if not state:
        return ""

    style = "state." + state.lower().replace(" ", "_")
    if style not in CYGPKG_THEME.styles:
        return state
    return f"[{style}]{state}[/{style}]"
