"""Load orchestrator — fetch, retry, fall back to cache, present.

One orchestrator drives one list screen. A refresh cycle walks this
state machine::

    idle/success/cached/failed --refresh--> loading
    loading --ok--> success                         (present items)
    loading --error, retries left--> retry_pending --> loading
    loading --error, exhausted, friends + premium--> fallback
    fallback --cache hit--> cached                  (present cached items)
    fallback --cache miss--> failed                 (present original error)
    loading --error, exhausted, otherwise--> failed (present error)

INVARIANT: At most one fetch or cache read is outstanding per session.
INVARIANT: ``retry_count`` never exceeds ``config.max_retry_count``.

All state lives on the injected :class:`ExecutionContext`; collaborator
callbacks are hopped onto it before touching anything. The presenter is
held through a :class:`PresenterHandle`, so callbacks that land after
:meth:`LoadOrchestrator.teardown` (or after the presenter is garbage
collected) are dropped.
"""

from __future__ import annotations

import functools
import weakref
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

import structlog

from itemscreen.domain.entities import Card, Friend, Transfer
from itemscreen.domain.types import ContextKind, LoadState
from itemscreen.infrastructure.dispatch import InlineContext
from itemscreen.services.contracts import FetchResult, LoadingIndicator
from itemscreen.services.errors import CacheUnavailable, TransientFetchError
from itemscreen.services.projector import DisplayItem, project_all

if TYPE_CHECKING:
    from itemscreen.domain.contexts import ContextConfig
    from itemscreen.infrastructure.dispatch import ExecutionContext
    from itemscreen.plugins.manager import PluginManager
    from itemscreen.services.contracts import (
        CacheStore,
        DataSources,
        Navigator,
        ScreenPresenter,
        UserSession,
    )
    from itemscreen.services.formatting import Formatter

log = structlog.get_logger(__name__)

type AnyEntity = Card | Friend | Transfer


class PresenterHandle:
    """Non-owning reference to a presenter that can be invalidated on teardown."""

    def __init__(self, presenter: ScreenPresenter) -> None:
        self._ref: weakref.ref[ScreenPresenter] = weakref.ref(presenter)
        self._valid = True

    def get(self) -> ScreenPresenter | None:
        """The presenter, or None once torn down or collected."""
        if not self._valid:
            return None
        return self._ref()

    def invalidate(self) -> None:
        self._valid = False

    @property
    def alive(self) -> bool:
        return self.get() is not None


class LoadOrchestrator:
    """Per-screen fetch/retry/fallback state machine.

    Parameters:
        config: The screen's context configuration.
        sources: Data sources; the one for ``config.kind`` is used.
        presenter: Receives items or the final error. Held weakly.
        cache: Friends cache for write-through and fallback.
        user: Current user; ``None`` counts as not premium.
        navigator: Target of item selection and the primary action.
        context: Execution context owning all state (default: inline).
        formatter: Locale-bound formatter for transfer rows.
        plugins: Optional plugin manager receiving lifecycle hooks.
    """

    def __init__(
        self,
        config: ContextConfig,
        sources: DataSources,
        presenter: ScreenPresenter,
        *,
        cache: CacheStore | None = None,
        user: UserSession | None = None,
        navigator: Navigator | None = None,
        context: ExecutionContext | None = None,
        formatter: Formatter | None = None,
        plugins: PluginManager | None = None,
    ) -> None:
        self.config = config
        self._source = sources.for_kind(config.kind)
        self._presenter = PresenterHandle(presenter)
        self._cache = cache
        self._user = user
        self._navigator = navigator
        self._context: ExecutionContext = context or InlineContext()
        self._formatter = formatter
        self._plugins = plugins

        self.state = LoadState.IDLE
        self.retry_count = 0
        self.attempts = 0
        self.items: tuple[DisplayItem, ...] = ()
        self.last_error: BaseException | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def refresh(self) -> None:
        """Start a new refresh cycle unless one is already outstanding."""
        self._context.run(self._begin_refresh)

    def appear(self) -> None:
        """Refresh when the screen becomes visible with nothing loaded."""
        self._context.run(self._appear)

    def select(self, index: int) -> None:
        """Run the selection action of the item at *index*."""
        self._context.run(lambda: self.items[index].select())

    def trigger_primary_action(self) -> None:
        """Open the add/send/request flow for this screen."""
        action = self.config.primary_action
        if action is None or self._navigator is None:
            log.debug("screen.primary_action_unavailable", kind=str(self.config.kind))
            return
        self._navigator.show_flow(action)

    def teardown(self) -> None:
        """Detach the presenter; in-flight callbacks become no-ops."""
        self._presenter.invalidate()

    @property
    def is_loading(self) -> bool:
        return self.state.in_flight

    # ------------------------------------------------------------------
    # Refresh cycle
    # ------------------------------------------------------------------

    def _appear(self) -> None:
        if not self.items:
            self._begin_refresh()

    def _begin_refresh(self) -> None:
        if self.state.in_flight:
            log.debug(
                "load.refresh_ignored",
                kind=str(self.config.kind),
                state=str(self.state),
            )
            return
        self.attempts = 0
        self._set_loading(True)
        self._issue_fetch()

    def _issue_fetch(self) -> None:
        self.state = LoadState.LOADING
        self.attempts += 1
        log.debug("load.fetch", kind=str(self.config.kind), attempt=self.attempts)
        self._source.load(self._hop(self._handle_fetch))

    def _handle_fetch(self, result: FetchResult[Any]) -> None:
        presenter = self._presenter.get()
        if presenter is None:
            log.debug("load.callback_dropped", kind=str(self.config.kind))
            return

        if result.ok:
            entities = self._filter_for_kind(result.items)
            if self._premium_friends():
                self._write_through(entities)
            items = project_all(entities, self.config, self._bind, formatter=self._formatter)
            self._finish_success(presenter, items, origin="live")
            return

        assert result.error is not None
        error = TransientFetchError.wrap(result.error, self.config.kind, self.attempts)

        if self.config.should_retry and self.retry_count < self.config.max_retry_count:
            self.retry_count += 1
            self.state = LoadState.RETRY_PENDING
            log.info(
                "load.retry",
                kind=str(self.config.kind),
                retry=self.retry_count,
                max_retries=self.config.max_retry_count,
                error=str(error),
            )
            self._dispatch("post_retry", kind=str(self.config.kind), attempt=self.retry_count)
            self._issue_fetch()
            return

        self.retry_count = 0
        if self._premium_friends():
            self._begin_fallback(error)
            return
        self._finish_failure(presenter, error)

    # ------------------------------------------------------------------
    # Cache fallback
    # ------------------------------------------------------------------

    def _begin_fallback(self, error: TransientFetchError) -> None:
        assert self._cache is not None
        self.state = LoadState.FALLBACK
        log.info("load.fallback", kind=str(self.config.kind), error=str(error))
        self._cache.load_friends(self._hop(lambda result: self._handle_cache(result, error)))

    def _handle_cache(self, result: FetchResult[Friend], error: TransientFetchError) -> None:
        presenter = self._presenter.get()
        if presenter is None:
            log.debug("load.callback_dropped", kind=str(self.config.kind))
            return

        if result.ok and result.items:
            items = project_all(result.items, self.config, self._bind, formatter=self._formatter)
            self.items = items
            self.state = LoadState.CACHED
            self.last_error = None
            self._dispatch("post_load", kind=str(self.config.kind), count=len(items), origin="cache")
            self._set_loading(False)
            presenter.present(items)
            return

        unavailable = CacheUnavailable(
            "cache empty" if result.ok else f"cache read failed: {result.error}"
        )
        unavailable.__cause__ = result.error
        log.warning(
            "load.cache_unavailable",
            kind=str(self.config.kind),
            reason=str(unavailable),
        )
        self._finish_failure(presenter, error)

    # ------------------------------------------------------------------
    # Terminal transitions
    # ------------------------------------------------------------------

    def _finish_success(
        self,
        presenter: ScreenPresenter,
        items: tuple[DisplayItem, ...],
        *,
        origin: str,
    ) -> None:
        self.retry_count = 0
        self.items = items
        self.state = LoadState.SUCCESS
        self.last_error = None
        log.debug("load.success", kind=str(self.config.kind), count=len(items))
        self._dispatch("post_load", kind=str(self.config.kind), count=len(items), origin=origin)
        self._set_loading(False)
        presenter.present(items)

    def _finish_failure(self, presenter: ScreenPresenter, error: TransientFetchError) -> None:
        self.state = LoadState.FAILED
        self.last_error = error
        log.info(
            "load.failed",
            kind=str(self.config.kind),
            attempts=self.attempts,
            error=str(error),
        )
        self._dispatch(
            "post_load_failed",
            kind=str(self.config.kind),
            error=str(error),
            attempts=self.attempts,
        )
        self._set_loading(False)
        presenter.present_error(error)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _hop[T](self, handler: Callable[[T], None]) -> Callable[[T], None]:
        """Wrap *handler* so it always runs on the owning context."""

        def callback(value: T) -> None:
            self._context.run(lambda: handler(value))

        return callback

    def _filter_for_kind(self, entities: Sequence[AnyEntity]) -> list[AnyEntity]:
        kind = self.config.kind
        if not kind.is_transfer:
            return list(entities)
        outgoing = kind is ContextKind.SENT_TRANSFERS
        return [e for e in entities if not isinstance(e, Transfer) or e.is_sender is outgoing]

    def _premium_friends(self) -> bool:
        return (
            self.config.kind is ContextKind.FRIENDS
            and self._cache is not None
            and self._user is not None
            and self._user.is_premium is True
        )

    def _write_through(self, entities: Sequence[AnyEntity]) -> None:
        assert self._cache is not None
        friends = [e for e in entities if isinstance(e, Friend)]
        try:
            self._cache.save(friends)
        except Exception:
            log.warning("load.cache_write_failed", kind=str(self.config.kind), exc_info=True)

    def _bind(self, entity: AnyEntity) -> Callable[[], None]:
        return functools.partial(self._select_entity, entity)

    def _select_entity(self, entity: AnyEntity) -> None:
        if not self._presenter.alive:
            return
        if self._navigator is None:
            log.debug("screen.select_without_navigator", kind=str(self.config.kind))
            return
        self._navigator.show_detail(entity)

    def _set_loading(self, loading: bool) -> None:
        presenter = self._presenter.get()
        if isinstance(presenter, LoadingIndicator):
            presenter.set_loading(loading)

    def _dispatch(self, hook_name: str, **payload: Any) -> None:
        if self._plugins is not None:
            self._plugins.dispatch(hook_name, **payload)
