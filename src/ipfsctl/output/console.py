"""Rich Console factory and theme for ipfsctl text output.

Creates Console instances that render to a StringIO buffer, so text
marshallers keep a plain ``value -> str`` contract.  In non-TTY
environments (tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from collections.abc import Mapping
from io import StringIO
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

IPFSCTL_THEME = Theme(
    {
        "ipfs.key": "dim",
        "ipfs.id": "bold blue",
        "ipfs.path": "dim",
        "ipfs.title": "bold",
        "ipfs.version": "bold cyan",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=IPFSCTL_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def render_fields(fields: Mapping[str, Any], *, value_style: str = "") -> str:
    """Render *fields* as an aligned two-column key/value grid."""
    console = create_console()
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="ipfs.key")
    grid.add_column(style=value_style)
    for key, value in fields.items():
        if isinstance(value, (list, tuple)):
            value = "\n".join(str(v) for v in value) or "-"
        grid.add_row(Text(key), Text(str(value)))
    console.print(grid)
    return get_output(console)
