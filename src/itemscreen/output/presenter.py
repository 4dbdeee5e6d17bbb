"""Console implementations of the presenter and navigator contracts.

The CLI has no list widget or detail screens, so the presenter records
what it was asked to show and hands it back as a :class:`ServiceResult`,
and the navigator records which detail screen or flow would have opened.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from itemscreen.domain.entities import Card, Friend, Transfer
from itemscreen.services.contracts import DisplayRow, LoadResultData, dump_validated
from itemscreen.services.errors import TransientFetchError
from itemscreen.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from itemscreen.domain.contexts import ContextConfig
    from itemscreen.domain.types import PrimaryAction
    from itemscreen.services.projector import DisplayItem


class ConsolePresenter:
    """Collects the outcome of one refresh cycle for the CLI."""

    def __init__(self, config: ContextConfig) -> None:
        self.config = config
        self.items: tuple[DisplayItem, ...] = ()
        self.error: BaseException | None = None
        self.loading_transitions: list[bool] = []
        self.finished = threading.Event()

    def present(self, items: Sequence[DisplayItem]) -> None:
        self.items = tuple(items)
        self.error = None
        self.finished.set()

    def present_error(self, error: BaseException) -> None:
        self.error = error
        self.finished.set()

    def set_loading(self, loading: bool) -> None:
        self.loading_transitions.append(loading)

    def to_result(
        self,
        *,
        origin: str,
        meta: dict[str, Any] | None = None,
        **extra: Any,
    ) -> ServiceResult:
        """Build the ServiceResult for the outcome presented so far."""
        op = f"load_{self.config.kind}"
        if self.error is not None:
            detail: dict[str, Any] = {"kind": str(self.config.kind)}
            if isinstance(self.error, TransientFetchError):
                detail["attempts"] = self.error.attempts
            if self.error.__cause__ is not None:
                detail["cause"] = type(self.error.__cause__).__name__
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(code="FETCH_FAILED", message=str(self.error), detail=detail),
                meta=meta,
            )

        rows = [DisplayRow(title=i.title, subtitle=i.subtitle) for i in self.items]
        data = dump_validated(
            LoadResultData,
            {
                "kind": self.config.kind,
                "title": self.config.title,
                "origin": origin,
                "count": len(rows),
                "items": rows,
                **extra,
            },
        )
        warnings = ["Showing cached friends; live load failed"] if origin == "cache" else []
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings, meta=meta)


def describe_entity(entity: Card | Friend | Transfer) -> str:
    """One-line label for the detail screen an entity would open."""
    match entity:
        case Card():
            return f"card {entity.number} ({entity.holder})"
        case Friend():
            return f"friend {entity.name} ({entity.phone})"
        case Transfer():
            direction = "to " + entity.recipient if entity.is_sender else "from " + entity.sender
            return f"transfer {entity.description} {direction}"


class ConsoleNavigator:
    """Records navigation requests instead of pushing screens."""

    def __init__(self) -> None:
        self.details: list[str] = []
        self.flows: list[str] = []

    def show_detail(self, entity: Card | Friend | Transfer) -> None:
        self.details.append(describe_entity(entity))

    def show_flow(self, action: PrimaryAction) -> None:
        self.flows.append(str(action))
