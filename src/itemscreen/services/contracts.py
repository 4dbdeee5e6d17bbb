"""Collaborator contracts and typed payloads at the core's boundaries.

The orchestrator only talks to the outside world through the protocols
below. Concrete implementations live in ``itemscreen.infrastructure``
(JSON sources, SQLite cache, static user) and ``itemscreen.output``
(console presenter and navigator); tests supply their own fakes.

The pydantic payload models validate what the outer shell emits so key
regressions (for example ``items`` vs ``rows``) fail fast in tests.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from itemscreen.domain.types import ContextKind

if TYPE_CHECKING:
    from itemscreen.domain.entities import Card, Friend, Transfer
    from itemscreen.domain.types import PrimaryAction
    from itemscreen.services.projector import DisplayItem


# ---------------------------------------------------------------------------
# Fetch results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FetchResult[T]:
    """Either the loaded items or the error a collaborator failed with."""

    items: tuple[T, ...] = ()
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, items: Iterable[T]) -> FetchResult[T]:
        return cls(items=tuple(items))

    @classmethod
    def failure(cls, error: BaseException) -> FetchResult[T]:
        return cls(error=error)


type Completion[T] = Callable[[FetchResult[T]], None]


# ---------------------------------------------------------------------------
# Collaborator protocols
# ---------------------------------------------------------------------------


class DataSource[T](Protocol):
    """Remote source for one entity kind.

    ``load`` is asynchronous and calls *on_complete* at most once, from
    any thread.
    """

    def load(self, on_complete: Completion[T]) -> None: ...


class CacheStore(Protocol):
    """Local store of previously loaded friends."""

    def save(self, friends: Sequence[Friend]) -> None:
        """Persist *friends*; fire-and-forget."""
        ...

    def load_friends(self, on_complete: Completion[Friend]) -> None:
        """Read cached friends asynchronously."""
        ...


class UserSession(Protocol):
    """The current authenticated user, read synchronously."""

    @property
    def is_premium(self) -> bool: ...


class ScreenPresenter(Protocol):
    """Receives the final item list or the error to show."""

    def present(self, items: Sequence[DisplayItem]) -> None: ...

    def present_error(self, error: BaseException) -> None: ...


@runtime_checkable
class LoadingIndicator(Protocol):
    """Optional presenter extension driving a refresh spinner."""

    def set_loading(self, loading: bool) -> None: ...


class Navigator(Protocol):
    """Routes to detail screens and to the add/send/request flows."""

    def show_detail(self, entity: Card | Friend | Transfer) -> None: ...

    def show_flow(self, action: PrimaryAction) -> None: ...


@dataclass(frozen=True)
class DataSources:
    """One data source per entity kind; both transfer screens share one."""

    friends: DataSource[Friend]
    cards: DataSource[Card]
    transfers: DataSource[Transfer]

    def for_kind(self, kind: ContextKind) -> DataSource[Any]:
        match kind:
            case ContextKind.FRIENDS:
                return self.friends
            case ContextKind.CARDS:
                return self.cards
            case ContextKind.SENT_TRANSFERS | ContextKind.RECEIVED_TRANSFERS:
                return self.transfers


# ---------------------------------------------------------------------------
# Outer-shell payloads
# ---------------------------------------------------------------------------


def dump_validated[T: BaseModel](model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="json")


class DisplayRow(BaseModel):
    """One rendered row: the printable half of a ``DisplayItem``."""

    model_config = ConfigDict(extra="forbid")

    title: str
    subtitle: str


class LoadResultData(BaseModel):
    """Payload contract for the ``load_<kind>`` operations."""

    model_config = ConfigDict(extra="allow")

    kind: ContextKind
    title: str
    origin: Literal["live", "cache"]
    count: int
    items: list[DisplayRow] = Field(default_factory=list)
