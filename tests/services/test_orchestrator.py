"""Tests for LoadOrchestrator — retry, cache fallback, filtering, lifecycle."""

from __future__ import annotations

import gc
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import pytest

from itemscreen.domain.contexts import context_for
from itemscreen.domain.types import LoadState, PrimaryAction
from itemscreen.infrastructure.dispatch import SerialContext
from itemscreen.infrastructure.sources import FixtureSource
from itemscreen.output.presenter import ConsolePresenter
from itemscreen.plugins.hookspecs import hookimpl
from itemscreen.plugins.manager import PluginManager
from itemscreen.services.contracts import DataSources, FetchResult
from itemscreen.services.errors import (
    CacheUnavailable,
    TransientFetchError,
    UnsupportedEntityKind,
)
from itemscreen.services.orchestrator import LoadOrchestrator, PresenterHandle
from tests.conftest import (
    ALICE,
    BOB,
    LUNCH,
    RENT,
    VISA,
    FakeCache,
    FreeUser,
    PremiumUser,
    RecordingNavigator,
    RecordingPlugin,
    RecordingPresenter,
    ScriptedSource,
    make_sources,
)


def _friends(source: ScriptedSource[Any], presenter: RecordingPresenter, **kwargs: Any):
    return LoadOrchestrator(
        context_for("friends"), make_sources(friends=source), presenter, **kwargs
    )


class TestRetry:
    def test_recovers_within_retry_budget(self, presenter: RecordingPresenter) -> None:
        source = ScriptedSource([ALICE, BOB], fail_first=2)
        orch = _friends(source, presenter)
        orch.refresh()

        assert source.calls == 3
        assert orch.attempts == 3
        assert orch.retry_count == 0
        assert orch.state is LoadState.SUCCESS
        assert [i.title for i in presenter.presented[0]] == ["Alice", "Bob"]
        assert presenter.errors == []

    def test_exhausted_retries_fetch_max_plus_one(self, presenter: RecordingPresenter) -> None:
        source = ScriptedSource([ALICE], fail_first=99)
        orch = _friends(source, presenter)
        orch.refresh()

        config = context_for("friends")
        assert source.calls == config.max_retry_count + 1
        assert orch.retry_count == 0
        assert orch.state is LoadState.FAILED
        assert len(presenter.errors) == 1
        assert presenter.presented == []

    def test_error_wraps_source_failure(self, presenter: RecordingPresenter) -> None:
        orch = _friends(ScriptedSource(fail_first=99), presenter)
        orch.refresh()

        error = presenter.errors[0]
        assert isinstance(error, TransientFetchError)
        assert isinstance(error.__cause__, ConnectionError)
        assert error.kind == "friends"
        assert orch.last_error is error

    def test_source_transient_error_reports_screen_attempts(
        self, presenter: RecordingPresenter
    ) -> None:
        source: ScriptedSource[Any] = ScriptedSource(deferred=True)
        orch = _friends(source, presenter)
        orch.refresh()
        upstream = TransientFetchError(orch.config.kind, 0, "gateway down")
        while source.pending:
            source.complete(FetchResult.failure(upstream))

        error = presenter.errors[0]
        assert source.calls == 3
        assert isinstance(error, TransientFetchError)
        assert error.attempts == 3
        assert error.__cause__ is upstream

    def test_no_retry_for_cards(self, presenter: RecordingPresenter) -> None:
        source = ScriptedSource([VISA], fail_first=1)
        orch = LoadOrchestrator(context_for("cards"), make_sources(cards=source), presenter)
        orch.refresh()

        assert source.calls == 1
        assert orch.state is LoadState.FAILED
        assert len(presenter.errors) == 1

    @pytest.mark.parametrize("kind", ["sent_transfers", "received_transfers"])
    def test_transfers_retry_once(self, kind: str, presenter: RecordingPresenter) -> None:
        source = ScriptedSource([LUNCH, RENT], fail_first=99)
        orch = LoadOrchestrator(context_for(kind), make_sources(transfers=source), presenter)
        orch.refresh()

        assert source.calls == 2
        assert orch.state is LoadState.FAILED

    def test_retry_count_tracks_reissues(self, presenter: RecordingPresenter) -> None:
        source = ScriptedSource([ALICE], deferred=True)
        orch = _friends(source, presenter)
        orch.refresh()

        source.complete(FetchResult.failure(ConnectionError("down")))
        assert orch.retry_count == 1
        assert orch.state is LoadState.LOADING
        assert source.calls == 2

        source.complete(FetchResult.failure(ConnectionError("down")))
        assert orch.retry_count == 2

        source.complete()
        assert orch.retry_count == 0
        assert orch.state is LoadState.SUCCESS

    def test_loading_indicator_toggles_once_per_cycle(
        self, presenter: RecordingPresenter
    ) -> None:
        orch = _friends(ScriptedSource([ALICE], fail_first=2), presenter)
        orch.refresh()
        assert presenter.loading == [True, False]

        orch.refresh()
        assert presenter.loading == [True, False, True, False]


class TestCacheFallback:
    def test_premium_friends_fall_back_to_cache(self, presenter: RecordingPresenter) -> None:
        cache = FakeCache([BOB])
        orch = _friends(ScriptedSource(fail_first=99), presenter, cache=cache, user=PremiumUser())
        orch.refresh()

        assert orch.state is LoadState.CACHED
        assert [i.title for i in presenter.presented[0]] == ["Bob"]
        assert presenter.errors == []
        assert cache.reads == 1
        assert presenter.loading == [True, False]

    def test_fallback_does_not_rewrite_cache(self, presenter: RecordingPresenter) -> None:
        cache = FakeCache([BOB])
        orch = _friends(ScriptedSource(fail_first=99), presenter, cache=cache, user=PremiumUser())
        orch.refresh()
        assert cache.saves == []

    def test_free_user_gets_error(self, presenter: RecordingPresenter) -> None:
        cache = FakeCache([BOB])
        orch = _friends(ScriptedSource(fail_first=99), presenter, cache=cache, user=FreeUser())
        orch.refresh()

        assert orch.state is LoadState.FAILED
        assert cache.reads == 0
        assert len(presenter.errors) == 1

    def test_missing_user_counts_as_free(self, presenter: RecordingPresenter) -> None:
        cache = FakeCache([BOB])
        orch = _friends(ScriptedSource(fail_first=99), presenter, cache=cache)
        orch.refresh()
        assert cache.reads == 0

    def test_empty_cache_surfaces_original_error(self, presenter: RecordingPresenter) -> None:
        cache = FakeCache([])
        orch = _friends(ScriptedSource(fail_first=99), presenter, cache=cache, user=PremiumUser())
        orch.refresh()

        assert orch.state is LoadState.FAILED
        error = presenter.errors[0]
        assert isinstance(error, TransientFetchError)
        assert not isinstance(error, CacheUnavailable)
        assert isinstance(error.__cause__, ConnectionError)

    def test_cache_read_error_surfaces_original_error(
        self, presenter: RecordingPresenter
    ) -> None:
        cache = FakeCache([BOB], read_error=OSError("disk gone"))
        orch = _friends(ScriptedSource(fail_first=99), presenter, cache=cache, user=PremiumUser())
        orch.refresh()

        assert orch.state is LoadState.FAILED
        assert isinstance(presenter.errors[0].__cause__, ConnectionError)

    def test_no_fallback_for_premium_non_friends(self, presenter: RecordingPresenter) -> None:
        cache = FakeCache([BOB])
        orch = LoadOrchestrator(
            context_for("cards"),
            make_sources(cards=ScriptedSource(fail_first=99)),
            presenter,
            cache=cache,
            user=PremiumUser(),
        )
        orch.refresh()

        assert cache.reads == 0
        assert orch.state is LoadState.FAILED


class TestWriteThrough:
    def test_premium_success_saves_friends(self, presenter: RecordingPresenter) -> None:
        cache = FakeCache()
        orch = _friends(ScriptedSource([ALICE, BOB]), presenter, cache=cache, user=PremiumUser())
        orch.refresh()
        assert cache.saves == [[ALICE, BOB]]

    def test_free_success_does_not_save(self, presenter: RecordingPresenter) -> None:
        cache = FakeCache()
        orch = _friends(ScriptedSource([ALICE]), presenter, cache=cache, user=FreeUser())
        orch.refresh()
        assert cache.saves == []

    def test_save_failure_does_not_fail_load(self, presenter: RecordingPresenter) -> None:
        cache = FakeCache(save_error=OSError("read-only"))
        orch = _friends(ScriptedSource([ALICE]), presenter, cache=cache, user=PremiumUser())
        orch.refresh()

        assert orch.state is LoadState.SUCCESS
        assert len(presenter.presented) == 1


class TestTransferFiltering:
    def test_sent_keeps_outgoing(self, presenter: RecordingPresenter) -> None:
        orch = LoadOrchestrator(
            context_for("sent_transfers"),
            make_sources(transfers=ScriptedSource([LUNCH, RENT])),
            presenter,
        )
        orch.refresh()

        (items,) = presenter.presented
        assert [i.title for i in items] == ["$12.50 • Lunch"]
        assert items[0].subtitle.startswith("Sent to: Bob on ")

    def test_received_keeps_incoming(self, presenter: RecordingPresenter) -> None:
        orch = LoadOrchestrator(
            context_for("received_transfers"),
            make_sources(transfers=ScriptedSource([LUNCH, RENT])),
            presenter,
        )
        orch.refresh()

        (items,) = presenter.presented
        assert [i.title for i in items] == ["$800.00 • Rent share"]
        assert items[0].subtitle.startswith("Received from: Carol on ")


class TestRefreshLifecycle:
    def test_refresh_while_loading_is_ignored(self, presenter: RecordingPresenter) -> None:
        source = ScriptedSource([ALICE], deferred=True)
        orch = _friends(source, presenter)
        orch.refresh()
        orch.refresh()

        assert source.calls == 1
        assert orch.is_loading
        source.complete()
        assert len(presenter.presented) == 1
        assert not orch.is_loading

    def test_refresh_after_success_reloads(self, presenter: RecordingPresenter) -> None:
        source = ScriptedSource([ALICE])
        orch = _friends(source, presenter)
        orch.refresh()
        orch.refresh()

        assert source.calls == 2
        assert orch.attempts == 1
        assert len(presenter.presented) == 2

    def test_appear_loads_only_when_empty(self, presenter: RecordingPresenter) -> None:
        source = ScriptedSource([ALICE])
        orch = _friends(source, presenter)
        orch.appear()
        orch.appear()
        assert source.calls == 1

    def test_appear_after_failure_retries(self, presenter: RecordingPresenter) -> None:
        source = ScriptedSource([ALICE], fail_first=3)
        orch = _friends(source, presenter)
        orch.appear()
        assert orch.state is LoadState.FAILED

        orch.appear()
        assert orch.state is LoadState.SUCCESS
        assert source.calls == 4

    def test_items_kept_after_later_failure(self, presenter: RecordingPresenter) -> None:
        source = ScriptedSource([ALICE], deferred=True)
        orch = _friends(source, presenter)
        orch.refresh()
        source.complete()

        orch.refresh()
        for _ in range(3):
            source.complete(FetchResult.failure(ConnectionError("down")))

        assert orch.state is LoadState.FAILED
        assert [i.title for i in orch.items] == ["Alice"]

    def test_teardown_drops_late_callbacks(self, presenter: RecordingPresenter) -> None:
        source = ScriptedSource([ALICE], deferred=True)
        orch = _friends(source, presenter)
        orch.refresh()
        orch.teardown()
        source.complete()

        assert presenter.presented == []
        assert presenter.errors == []

    def test_collected_presenter_drops_callbacks(self) -> None:
        source = ScriptedSource([ALICE], deferred=True)
        presenter = RecordingPresenter()
        orch = _friends(source, presenter)
        orch.refresh()
        del presenter
        gc.collect()

        source.complete()
        assert orch.items == ()


class TestNavigation:
    def test_select_shows_detail(
        self, presenter: RecordingPresenter, navigator: RecordingNavigator
    ) -> None:
        orch = _friends(ScriptedSource([ALICE, BOB]), presenter, navigator=navigator)
        orch.refresh()
        assert navigator.details == []

        orch.select(1)
        assert navigator.details == [BOB]

    def test_select_after_teardown_is_noop(
        self, presenter: RecordingPresenter, navigator: RecordingNavigator
    ) -> None:
        orch = _friends(ScriptedSource([ALICE]), presenter, navigator=navigator)
        orch.refresh()
        orch.teardown()
        orch.select(0)
        assert navigator.details == []

    def test_select_out_of_range(self, presenter: RecordingPresenter) -> None:
        orch = _friends(ScriptedSource([ALICE]), presenter)
        orch.refresh()
        with pytest.raises(IndexError):
            orch.select(5)

    @pytest.mark.parametrize(
        ("kind", "action"),
        [
            ("friends", PrimaryAction.ADD_FRIEND),
            ("cards", PrimaryAction.ADD_CARD),
            ("sent_transfers", PrimaryAction.SEND_MONEY),
            ("received_transfers", PrimaryAction.REQUEST_MONEY),
        ],
    )
    def test_primary_action(
        self,
        kind: str,
        action: PrimaryAction,
        presenter: RecordingPresenter,
        navigator: RecordingNavigator,
    ) -> None:
        orch = LoadOrchestrator(context_for(kind), make_sources(), presenter, navigator=navigator)
        orch.trigger_primary_action()
        assert navigator.flows == [action]

    def test_primary_action_without_navigator(self, presenter: RecordingPresenter) -> None:
        orch = _friends(ScriptedSource(), presenter)
        orch.trigger_primary_action()


class TestPluginHooks:
    def _manager(self, plugin: object) -> PluginManager:
        pm = PluginManager()
        pm.register_plugin(plugin, name="recorder")
        return pm

    def test_success_and_retry_events(self, presenter: RecordingPresenter) -> None:
        plugin = RecordingPlugin()
        orch = _friends(
            ScriptedSource([ALICE], fail_first=1), presenter, plugins=self._manager(plugin)
        )
        orch.refresh()

        assert plugin.events == [
            ("post_retry", {"kind": "friends", "attempt": 1}),
            ("post_load", {"kind": "friends", "count": 1, "origin": "live"}),
        ]

    def test_failure_event(self, presenter: RecordingPresenter) -> None:
        plugin = RecordingPlugin()
        orch = _friends(ScriptedSource(fail_first=99), presenter, plugins=self._manager(plugin))
        orch.refresh()

        name, payload = plugin.events[-1]
        assert name == "post_load_failed"
        assert payload["attempts"] == 3
        assert [e[1]["attempt"] for e in plugin.events if e[0] == "post_retry"] == [1, 2]

    def test_cache_event(self, presenter: RecordingPresenter) -> None:
        plugin = RecordingPlugin()
        orch = _friends(
            ScriptedSource(fail_first=99),
            presenter,
            cache=FakeCache([BOB]),
            user=PremiumUser(),
            plugins=self._manager(plugin),
        )
        orch.refresh()
        assert plugin.events[-1] == ("post_load", {"kind": "friends", "count": 1, "origin": "cache"})

    def test_failing_plugin_does_not_break_load(self, presenter: RecordingPresenter) -> None:
        class _Broken:
            @hookimpl
            def post_load(self, kind: str, count: int, origin: str) -> None:
                raise RuntimeError("plugin bug")

        orch = _friends(ScriptedSource([ALICE]), presenter, plugins=self._manager(_Broken()))
        orch.refresh()
        assert orch.state is LoadState.SUCCESS
        assert len(presenter.presented) == 1


class TestPresenterHandle:
    def test_invalidate(self, presenter: RecordingPresenter) -> None:
        handle = PresenterHandle(presenter)
        assert handle.get() is presenter
        handle.invalidate()
        assert handle.get() is None
        assert not handle.alive


class TestSerialContext:
    def test_callbacks_hop_to_owner_thread(self) -> None:
        config = context_for("friends")
        seen: list[int] = []

        class _ThreadRecordingPresenter(ConsolePresenter):
            def present(self, items: Any) -> None:
                seen.append(threading.get_ident())
                super().present(items)

        presenter = _ThreadRecordingPresenter(config)
        serial = SerialContext(name="test-owner")
        workers = ThreadPoolExecutor(max_workers=2)
        try:
            source = FixtureSource("friends", [ALICE, BOB], executor=workers, fail_first=1)
            orch = LoadOrchestrator(
                config,
                DataSources(friends=source, cards=ScriptedSource(), transfers=ScriptedSource()),
                presenter,
                context=serial,
            )
            orch.refresh()
            assert presenter.finished.wait(5)
            serial.drain()

            owner_idents: list[int] = []
            serial.run(lambda: owner_idents.append(threading.get_ident()))
            serial.drain()
        finally:
            workers.shutdown(wait=True)
            serial.shutdown()

        assert orch.state is LoadState.SUCCESS
        assert orch.attempts == 2
        assert seen == owner_idents
        assert [i.title for i in presenter.items] == ["Alice", "Bob"]


class TestFatalErrors:
    def test_unsupported_entity_propagates_inline(self, presenter: RecordingPresenter) -> None:
        orch = _friends(ScriptedSource([{"name": "not an entity"}]), presenter)
        with pytest.raises(UnsupportedEntityKind):
            orch.refresh()
        assert presenter.errors == []

    def test_unsupported_entity_reraised_by_drain(self) -> None:
        presenter = RecordingPresenter()
        serial = SerialContext()
        try:
            orch = _friends(ScriptedSource([object()]), presenter, context=serial)
            orch.refresh()
            with pytest.raises(UnsupportedEntityKind):
                serial.drain()
        finally:
            serial.shutdown()
