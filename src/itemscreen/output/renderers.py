"""Rich renderers for ServiceResult.

``load_<kind>`` results become a numbered title/subtitle table and the
``contexts`` result becomes the preset table. Rendering happens on a
StringIO-backed console; the rendered text is returned to the caller.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from rich.text import Text

from itemscreen.output.console import (
    create_console,
    get_output,
    item_table,
    plain_table,
    style_for_origin,
)

if TYPE_CHECKING:
    from rich.console import Console

    from itemscreen.services.result import ServiceResult

type _Renderer = Callable[["ServiceResult", "Console", bool], None]

_CONTEXT_COLUMNS = ("kind", "title", "should_retry", "max_retry_count", "long_date_style")


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render *result* with Rich and return the text.

    No ANSI codes are emitted when output is not a terminal (pipes, CliRunner).
    """
    console = create_console()
    if result.ok:
        _renderer_for(result.op)(result, console, verbose)
    else:
        _render_error(result, console, verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Minimal ``--quiet`` text: item titles one per line, else a status line."""
    if not result.ok:
        message = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {message}"
    items = result.data.get("items")
    if isinstance(items, list) and items:
        return "\n".join(str(row.get("title", "")) for row in items if isinstance(row, dict))
    return f"OK: {result.op}"


# ── Building blocks ───────────────────────────────────────────────────


def _header(console: Console, label: str, style: str, op: str) -> None:
    console.print(Text.assemble((label, style), "  ", (op, "screen.op")))


def _kv(console: Console, key: str, value: Any, *, indent: int = 2) -> None:
    console.print(Text.assemble(" " * indent, (f"{key}: ", "screen.key"), str(value)))


def _kv_block(console: Console, heading: str, pairs: Iterable[tuple[str, Any]]) -> None:
    console.print(Text(f"  {heading}:", style="dim"))
    for key, value in pairs:
        _kv(console, key, value, indent=4)


def _warnings(console: Console, result: ServiceResult) -> None:
    for warning in result.warnings:
        console.print(Text(f"  warning: {warning}", style="screen.warning"))


def _meta(console: Console, result: ServiceResult) -> None:
    if result.meta:
        console.print()
        _kv_block(console, "meta", result.meta.items())


# ── Per-operation renderers ───────────────────────────────────────────


def _render_load(result: ServiceResult, console: Console, verbose: bool) -> None:
    data = result.data
    origin = str(data.get("origin", "live"))
    _header(console, "OK", "screen.ok", result.op)
    console.print(
        Text.assemble(
            ("  " + str(data.get("title", "")), "screen.title"),
            (f"  ({data.get('count', 0)} items, ", "screen.key"),
            (origin, style_for_origin(origin)),
            (")", "screen.key"),
        )
    )

    rows = data.get("items") or []
    if rows:
        table = item_table()
        for index, row in enumerate(rows):
            table.add_row(str(index), str(row.get("title", "")), str(row.get("subtitle", "")))
        console.print(table)

    for key in ("selected", "flow"):
        if key in data:
            _kv(console, key, data[key])
    _warnings(console, result)
    if verbose:
        _meta(console, result)


def _render_contexts(result: ServiceResult, console: Console, verbose: bool) -> None:
    _header(console, "OK", "screen.ok", result.op)
    table = plain_table(*_CONTEXT_COLUMNS)
    for row in result.data.get("contexts", []):
        table.add_row(*(str(row[column]) for column in _CONTEXT_COLUMNS))
    console.print(table)


def _render_error(result: ServiceResult, console: Console, verbose: bool) -> None:
    _header(console, "ERROR", "screen.error", result.op)
    console.print(Text("  " + (result.error.message if result.error else "Unknown error")))
    if verbose:
        if result.error and result.error.detail:
            _kv_block(console, "detail", result.error.detail.items())
        _meta(console, result)


def _renderer_for(op: str) -> _Renderer:
    return _render_contexts if op == "contexts" else _render_load
