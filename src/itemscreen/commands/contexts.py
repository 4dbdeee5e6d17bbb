"""Command: show the fixed screen context table."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from itemscreen.commands._base import ScreenCommand

if TYPE_CHECKING:
    from itemscreen.commands._context import AppContext


@click.command(
    cls=ScreenCommand,
    examples="""\
  itemscreen contexts
  itemscreen --json contexts""",
)
@click.pass_obj
def contexts(app: AppContext) -> None:
    """List the screen contexts with their retry and date-style policy."""
    from itemscreen.domain.contexts import CONTEXT_PRESETS
    from itemscreen.services.result import ServiceResult

    rows = [config.model_dump(mode="json") for config in CONTEXT_PRESETS.values()]
    app.emit(ServiceResult(ok=True, op="contexts", data={"count": len(rows), "contexts": rows}))
