"""Root CLI group: global flags, settings, and command registration."""

from __future__ import annotations

import click

from itemscreen import __version__
from itemscreen.commands import register_commands
from itemscreen.commands._context import AppContext
from itemscreen.config.settings import ItemScreenSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="itemscreen")
@click.option("--json", "json_output", is_flag=True, help="Emit results as JSON.")
@click.option("-q", "--quiet", is_flag=True, help="Print item titles only.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and result metadata.")
@click.option("--log-json", is_flag=True, help="Write logs to stderr as JSON lines.")
@click.option("-c", "--config", "config_path", default=None, help="Use this itemscreen.toml.")
@click.option("--sync", is_flag=True, help="Complete loads on the calling thread.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, **flags: bool) -> None:
    """itemscreen — load friends, cards and transfers list screens."""
    settings = ItemScreenSettings.from_cli(config_path=config_path, **flags)
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
