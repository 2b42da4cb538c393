"""Rich Console factory and theme for cubectl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

CUBE_THEME = Theme(
    {
        "cube.ok": "bold green",
        "cube.error": "bold red",
        "cube.warning": "bold yellow",
        "cube.op": "bold cyan",
        "cube.key": "dim",
        "cube.id": "bold blue",
        "cube.member": "bold",
        "cube.parent": "dim",
        "cube.status.ok": "green",
        "cube.status.dirty": "yellow",
        "cube.status.locked": "red",
    }
)

_STATUS_STYLES: dict[str, str] = {
    "ok": "cube.status.ok",
    "locked": "cube.status.locked",
    "no_data": "dim",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=CUBE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(label: str) -> str:
    """Return the Rich style for a calculation-status label."""
    return _STATUS_STYLES.get(label, "cube.status.dirty")
