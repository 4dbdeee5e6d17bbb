"""Per-invocation state shared by every subcommand.

The root group builds one :class:`AppContext` and Click hands it to
subcommands through ``@click.pass_obj``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from itemscreen.config.logging import configure_logging
from itemscreen.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from itemscreen.config.settings import ItemScreenSettings
    from itemscreen.plugins.manager import PluginManager
    from itemscreen.services.result import ServiceResult


class AppContext:
    """Settings, lazily loaded plugins, and result emission for one run."""

    def __init__(self, settings: ItemScreenSettings) -> None:
        self.settings = settings
        self._plugins: PluginManager | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def plugins(self) -> PluginManager:
        """Entry-point plugins, discovered on first access only."""
        if self._plugins is None:
            from itemscreen.plugins.manager import PluginManager

            manager = PluginManager()
            manager.discover_and_load()
            self._plugins = manager
        return self._plugins

    @property
    def output_settings(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )

    def emit(self, result: ServiceResult) -> None:
        """Print *result* and set the exit status.

        Successful results go to stdout. In plain quiet mode only titles
        reach stdout, so warnings are repeated on stderr. Failed results
        go to stderr and end the process with exit code 1.
        """
        out = self.output_settings
        text = format_result(result, settings=out)
        if not result.ok:
            click.echo(text, err=True)
            raise SystemExit(1)
        click.echo(text)
        if out.quiet and not out.json_output:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)
