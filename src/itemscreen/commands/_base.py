"""Click command class carrying an on-demand ``--examples`` flag.

``--help`` stays short; ``--examples`` prints worked invocations and
exits before any argument validation runs.
"""

from __future__ import annotations

from typing import Any

import click


class ScreenCommand(click.Command):
    """A :class:`click.Command` that accepts ``examples=`` and shows them on request."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples

    def get_params(self, ctx: click.Context) -> list[click.Parameter]:
        params = super().get_params(ctx)
        if not self.examples:
            return params
        flag = click.Option(
            ["--examples"],
            is_flag=True,
            is_eager=True,
            expose_value=False,
            callback=self._print_examples,
            help="Show usage examples and exit.",
        )
        return [*params, flag]

    def _print_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(self.examples)
        ctx.exit(0)
