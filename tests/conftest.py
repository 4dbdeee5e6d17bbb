"""Shared pytest fixtures and test doubles for itemscreen tests."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator, Sequence
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from itemscreen.domain.entities import Card, Friend, Transfer
from itemscreen.plugins.hookspecs import hookimpl
from itemscreen.services.contracts import Completion, DataSources, FetchResult

# ---------------------------------------------------------------------------
# Sample entities
# ---------------------------------------------------------------------------

ALICE = Friend(name="Alice", phone="555-0100")
BOB = Friend(name="Bob", phone="555-0101")
VISA = Card(number="4111 1111 1111 1111", holder="Alice Doe")
LUNCH = Transfer(
    amount=Decimal("12.50"),
    currency_code="USD",
    description="Lunch",
    date=datetime(2026, 10, 17, 14, 30),
    sender="Me",
    recipient="Bob",
    is_sender=True,
)
RENT = Transfer(
    amount=Decimal("800"),
    currency_code="USD",
    description="Rent share",
    date=datetime(2026, 10, 1, 9, 0),
    sender="Carol",
    recipient="Me",
    is_sender=False,
)


FIXTURE_DATA: dict[str, Any] = {
    "friends": [
        {"name": "Alice", "phone": "555-0100"},
        {"name": "Bob", "phone": "555-0101"},
    ],
    "cards": [{"number": "4111 1111 1111 1111", "holder": "Alice Doe"}],
    "transfers": [
        {
            "amount": "12.50",
            "currency_code": "USD",
            "description": "Lunch",
            "date": "2026-10-17T14:30:00",
            "sender": "Me",
            "recipient": "Bob",
            "is_sender": True,
        },
        {
            "amount": "800",
            "currency_code": "USD",
            "description": "Rent share",
            "date": "2026-10-01T09:00:00",
            "sender": "Carol",
            "recipient": "Me",
            "is_sender": False,
        },
    ],
}


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class ScriptedSource[T]:
    """Data source that fails its first *fail_first* loads.

    With ``deferred=True`` completions are parked in ``pending`` until the
    test calls :meth:`complete`.
    """

    def __init__(
        self,
        items: Sequence[T] = (),
        *,
        fail_first: int = 0,
        deferred: bool = False,
    ) -> None:
        self.items = tuple(items)
        self.fail_first = fail_first
        self.deferred = deferred
        self.calls = 0
        self.pending: list[Completion[T]] = []

    def load(self, on_complete: Completion[T]) -> None:
        self.calls += 1
        if self.deferred:
            self.pending.append(on_complete)
            return
        on_complete(self._result(self.calls))

    def complete(self, result: FetchResult[T] | None = None) -> None:
        on_complete = self.pending.pop(0)
        on_complete(result if result is not None else FetchResult.success(self.items))

    def _result(self, call: int) -> FetchResult[T]:
        if call <= self.fail_first:
            return FetchResult.failure(ConnectionError(f"offline (call {call})"))
        return FetchResult.success(self.items)


class FakeCache:
    """In-memory friends cache recording every save."""

    def __init__(
        self,
        friends: Sequence[Friend] = (),
        *,
        read_error: BaseException | None = None,
        save_error: BaseException | None = None,
    ) -> None:
        self.friends = list(friends)
        self.saves: list[list[Friend]] = []
        self.reads = 0
        self.read_error = read_error
        self.save_error = save_error

    def save(self, friends: Sequence[Friend]) -> None:
        if self.save_error is not None:
            raise self.save_error
        self.saves.append(list(friends))
        self.friends = list(friends)

    def load_friends(self, on_complete: Completion[Friend]) -> None:
        self.reads += 1
        if self.read_error is not None:
            on_complete(FetchResult.failure(self.read_error))
            return
        on_complete(FetchResult.success(self.friends))


class RecordingPresenter:
    """Presenter that records every call in order."""

    def __init__(self) -> None:
        self.presented: list[list[Any]] = []
        self.errors: list[BaseException] = []
        self.loading: list[bool] = []

    def present(self, items: Sequence[Any]) -> None:
        self.presented.append(list(items))

    def present_error(self, error: BaseException) -> None:
        self.errors.append(error)

    def set_loading(self, loading: bool) -> None:
        self.loading.append(loading)


class RecordingNavigator:
    def __init__(self) -> None:
        self.details: list[Any] = []
        self.flows: list[Any] = []

    def show_detail(self, entity: Any) -> None:
        self.details.append(entity)

    def show_flow(self, action: Any) -> None:
        self.flows.append(action)


class PremiumUser:
    is_premium = True


class FreeUser:
    is_premium = False


class RecordingPlugin:
    """Plugin implementing every load hook."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    @hookimpl
    def post_load(self, kind: str, count: int, origin: str) -> None:
        self.events.append(("post_load", {"kind": kind, "count": count, "origin": origin}))

    @hookimpl
    def post_retry(self, kind: str, attempt: int) -> None:
        self.events.append(("post_retry", {"kind": kind, "attempt": attempt}))

    @hookimpl
    def post_load_failed(self, kind: str, error: str, attempts: int) -> None:
        self.events.append(
            ("post_load_failed", {"kind": kind, "error": error, "attempts": attempts})
        )


def make_sources(
    *,
    friends: ScriptedSource[Friend] | None = None,
    cards: ScriptedSource[Card] | None = None,
    transfers: ScriptedSource[Transfer] | None = None,
) -> DataSources:
    """Build DataSources, defaulting each kind to an empty scripted source."""
    return DataSources(
        friends=friends or ScriptedSource(),
        cards=cards or ScriptedSource(),
        transfers=transfers or ScriptedSource(),
    )


def write_fixture(path: Path, data: dict[str, Any] | None = None) -> Path:
    """Write a fixture JSON file (defaults to ``FIXTURE_DATA``)."""
    path.write_text(json.dumps(FIXTURE_DATA if data is None else data), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture
def fixture_path(tmp_path: Path) -> Path:
    """Fixture file with two friends, one card and two transfers."""
    return write_fixture(tmp_path / "items.json")


@pytest.fixture
def _isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI reads no stray config.

    Use via ``@pytest.mark.usefixtures("_isolated_project")`` on command
    test classes. The default fixture ``items.json`` is written there.
    """
    for var in ("ITEMSCREEN_CONFIG", "ITEMSCREEN_USER__PREMIUM", "ITEMSCREEN_SYNC"):
        monkeypatch.delenv(var, raising=False)
    (tmp_path / "itemscreen.toml").write_text("")
    write_fixture(tmp_path / "items.json")
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Generator[None]:
    """Undo handler changes made by ``configure_logging`` during CLI runs."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    app = logging.getLogger("itemscreen")
    app_level = app.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    app.setLevel(app_level)
