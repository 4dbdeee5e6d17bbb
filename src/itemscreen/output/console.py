"""Rich console, theme and table factories for list-screen output.

Everything renders into a StringIO buffer and comes back as text, so
callers decide whether it goes to stdout or stderr. Rich drops colour
codes by itself when that stream is not a terminal.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

RENDER_WIDTH = 120

SCREEN_THEME = Theme(
    {
        "screen.ok": "bold green",
        "screen.error": "bold red",
        "screen.warning": "bold yellow",
        "screen.op": "bold cyan",
        "screen.key": "dim",
        "screen.index": "dim",
        "screen.title": "bold",
        "screen.subtitle": "dim",
        "screen.origin.live": "green",
        "screen.origin.cache": "yellow",
    }
)


def create_console() -> Console:
    """A themed console writing into a fresh StringIO buffer."""
    return Console(file=StringIO(), theme=SCREEN_THEME, highlight=False, width=RENDER_WIDTH)


def get_output(console: Console) -> str:
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_origin(origin: str) -> str:
    """Theme style for where items came from; unknown origins are unstyled."""
    if origin in ("live", "cache"):
        return f"screen.origin.{origin}"
    return ""


def plain_table(*columns: str) -> Table:
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    for column in columns:
        table.add_column(column)
    return table


def item_table() -> Table:
    """Numbered title/subtitle table; the index is what ``--select`` takes."""
    table = plain_table("#", "Title", "Subtitle")
    index, title, subtitle = table.columns
    index.justify = "right"
    index.style = "screen.index"
    title.style = "screen.title"
    subtitle.style = "screen.subtitle"
    return table
