"""Command: load one list screen from a fixture file."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from itemscreen.commands._base import ScreenCommand
from itemscreen.domain.types import ContextKind

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from itemscreen.commands._context import AppContext
    from itemscreen.infrastructure.dispatch import ExecutionContext
    from itemscreen.output.presenter import ConsolePresenter

_POLL_SECONDS = 0.05


@click.command(
    cls=ScreenCommand,
    examples="""\
  itemscreen load friends --data items.json
  itemscreen load friends --premium --fail-first 3
  itemscreen load sent_transfers --select 0
  itemscreen --json load cards --primary""",
)
@click.argument("kind", type=click.Choice([k.value for k in ContextKind]))
@click.option(
    "--data",
    "data_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Fixture JSON file (default: [sources] data_path).",
)
@click.option("--premium/--no-premium", default=None, help="Override the [user] premium tier.")
@click.option(
    "--fail-first",
    type=click.IntRange(min=0),
    default=0,
    help="Make the data source fail its first N loads.",
)
@click.option("--select", "select_index", type=int, default=None, help="Select item N after loading.")
@click.option("--primary", is_flag=True, help="Trigger the screen's primary action.")
@click.option("--no-cache", is_flag=True, help="Run without the friends cache.")
@click.pass_obj
def load(
    app: AppContext,
    kind: str,
    data_path: Path | None,
    premium: bool | None,
    fail_first: int,
    select_index: int | None,
    primary: bool,
    no_cache: bool,
) -> None:
    """Load a list screen, retrying and falling back like the app does."""
    from babel.core import UnknownLocaleError

    from itemscreen.domain.contexts import context_for
    from itemscreen.domain.types import LoadState
    from itemscreen.infrastructure.cache import SqliteFriendsCache
    from itemscreen.infrastructure.database import init_cache_database
    from itemscreen.infrastructure.dispatch import InlineContext, SerialContext
    from itemscreen.infrastructure.session import StaticUser
    from itemscreen.infrastructure.sources import FixtureError, build_sources, load_fixture
    from itemscreen.output.presenter import ConsoleNavigator, ConsolePresenter
    from itemscreen.services.formatting import Formatter
    from itemscreen.services.orchestrator import LoadOrchestrator

    settings = app.settings
    config = context_for(kind)

    fixture_path = data_path if data_path is not None else settings.resolve(settings.sources.data_path)
    try:
        fixture = load_fixture(fixture_path)
    except FixtureError as exc:
        raise click.ClickException(str(exc)) from exc

    try:
        formatter = Formatter(settings.formatting.locale)
    except (UnknownLocaleError, ValueError) as exc:
        msg = f"Unknown locale {settings.formatting.locale!r}: {exc}"
        raise click.ClickException(msg) from exc

    is_premium = settings.user.premium if premium is None else premium
    presenter = ConsolePresenter(config)
    navigator = ConsoleNavigator()

    context: ExecutionContext
    serial: SerialContext | None = None
    workers: ThreadPoolExecutor | None = None
    engine: Engine | None = None
    cache_worker: ThreadPoolExecutor | None = None
    try:
        if settings.sync:
            context = InlineContext()
        else:
            serial = context = SerialContext()
            workers = ThreadPoolExecutor(max_workers=2, thread_name_prefix="itemscreen-io")

        cache = None
        if settings.cache.enabled and not no_cache:
            engine = init_cache_database(settings.resolve(settings.cache.path))
            # Reads and writes share one worker so a read never overtakes a save.
            if workers is not None:
                cache_worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="itemscreen-cache")
            cache = SqliteFriendsCache(engine, executor=cache_worker)

        orchestrator = LoadOrchestrator(
            config,
            build_sources(fixture, executor=workers, fail_first=fail_first),
            presenter,
            cache=cache,
            user=StaticUser(is_premium=is_premium),
            navigator=navigator,
            context=context,
            formatter=formatter,
            plugins=app.plugins,
        )
        orchestrator.appear()
        _wait_for_outcome(presenter, serial, timeout=settings.sources.timeout_seconds)

        extra: dict[str, Any] = {}
        if presenter.error is None:
            if select_index is not None:
                if not 0 <= select_index < len(orchestrator.items):
                    msg = f"--select {select_index} out of range for {len(orchestrator.items)} items"
                    raise click.BadParameter(msg, param_hint="--select")
                orchestrator.select(select_index)
                if serial is not None:
                    serial.drain()
                extra["selected"] = navigator.details[-1] if navigator.details else None
            if primary:
                orchestrator.trigger_primary_action()
                extra["flow"] = navigator.flows[-1] if navigator.flows else None

        origin = "cache" if orchestrator.state is LoadState.CACHED else "live"
        meta = None
        if settings.verbose:
            meta = {
                "state": str(orchestrator.state),
                "attempts": orchestrator.attempts,
                "premium": is_premium,
                "loading": presenter.loading_transitions,
            }
        result = presenter.to_result(origin=origin, meta=meta, **extra)
    finally:
        if workers is not None:
            workers.shutdown(wait=True)
        if cache_worker is not None:
            cache_worker.shutdown(wait=True)
        if engine is not None:
            engine.dispose()
        if serial is not None:
            serial.shutdown()

    app.emit(result)


def _wait_for_outcome(
    presenter: ConsolePresenter,
    serial: Any,
    *,
    timeout: float,
) -> None:
    """Block until the presenter got items or an error.

    Queued owner-thread work is drained while waiting so a fatal error
    raised there surfaces here instead of stalling until the timeout.
    """
    deadline = time.monotonic() + timeout
    while not presenter.finished.wait(_POLL_SECONDS):
        if serial is not None:
            serial.drain()
        if time.monotonic() >= deadline:
            msg = f"Timed out after {timeout:g}s waiting for {presenter.config.kind}"
            raise click.ClickException(msg)
    if serial is not None:
        serial.drain()
