"""Item projector — entity to uniform display item.

Every list row, whatever the entity behind it, is shown as a title, a
subtitle, and an action to run when the user selects it. The projector
is pure: the same entity and config always yield the same title and
subtitle, and the selection callback is stored, never called.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Never, NoReturn

from itemscreen.domain.entities import Card, Friend, Transfer
from itemscreen.domain.types import DateStyle
from itemscreen.services.errors import UnsupportedEntityKind
from itemscreen.services.formatting import Formatter

if TYPE_CHECKING:
    from itemscreen.domain.contexts import ContextConfig

_DEFAULT_FORMATTER = Formatter()


@dataclass(frozen=True)
class DisplayItem:
    """One row of a list screen.

    ``action`` is excluded from equality so two projections of the same
    entity compare equal.
    """

    title: str
    subtitle: str
    action: Callable[[], None] = field(compare=False, repr=False)

    def select(self) -> None:
        """Run the selection action once."""
        self.action()


def project(
    entity: Card | Friend | Transfer,
    config: ContextConfig,
    on_select: Callable[[], None],
    *,
    formatter: Formatter | None = None,
) -> DisplayItem:
    """Project *entity* into a :class:`DisplayItem` for *config*.

    Raises:
        UnsupportedEntityKind: *entity* is not a Card, Friend or Transfer.
    """
    fmt = formatter or _DEFAULT_FORMATTER
    match entity:
        case Card():
            return DisplayItem(title=entity.number, subtitle=entity.holder, action=on_select)
        case Friend():
            return DisplayItem(title=entity.name, subtitle=entity.phone, action=on_select)
        case Transfer():
            return DisplayItem(
                title=_transfer_title(entity, fmt),
                subtitle=_transfer_subtitle(entity, config.date_style, fmt),
                action=on_select,
            )
        case _:
            # Type checkers reject this call once a variant goes unhandled.
            _raise_unsupported(entity)


def _raise_unsupported(entity: Never) -> NoReturn:
    raise UnsupportedEntityKind(entity)


def _transfer_title(transfer: Transfer, fmt: Formatter) -> str:
    amount = fmt.currency(transfer.amount, transfer.currency_code)
    return f"{amount} • {transfer.description}"


def _transfer_subtitle(transfer: Transfer, style: DateStyle, fmt: Formatter) -> str:
    # Long style always names the recipient, short style the sender.
    when = fmt.date(transfer.date, style)
    if style is DateStyle.LONG:
        return f"Sent to: {transfer.recipient} on {when}"
    return f"Received from: {transfer.sender} on {when}"


def project_all(
    entities: Iterable[Card | Friend | Transfer],
    config: ContextConfig,
    bind: Callable[[Card | Friend | Transfer], Callable[[], None]],
    *,
    formatter: Formatter | None = None,
) -> tuple[DisplayItem, ...]:
    """Project every entity, asking *bind* for each one's selection callback."""
    return tuple(project(e, config, bind(e), formatter=formatter) for e in entities)
