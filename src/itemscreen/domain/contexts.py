"""Screen context configuration and the fixed per-kind preset table.

A :class:`ContextConfig` is chosen once when a screen is created and
never changes afterwards. The preset table mirrors the retry and date
style policy of each screen:

=====================  ============  ===============  ===============
kind                   should_retry  max_retry_count  long_date_style
=====================  ============  ===============  ===============
friends                True          2                False
cards                  False         0                False
sent_transfers         True          1                True
received_transfers     True          1                False
=====================  ============  ===============  ===============
"""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, Field, model_validator

from itemscreen.domain.types import ContextKind, DateStyle, PrimaryAction


class ContextConfig(BaseModel):
    """Immutable per-screen settings selecting source, retry policy and format."""

    model_config = {"frozen": True}

    kind: ContextKind
    should_retry: bool = False
    max_retry_count: int = Field(default=0, ge=0)
    long_date_style: bool = False
    title: str = ""
    primary_action: PrimaryAction | None = None

    @model_validator(mode="after")
    def _retry_count_requires_retry(self) -> Self:
        if not self.should_retry and self.max_retry_count != 0:
            msg = "max_retry_count must be 0 when should_retry is False"
            raise ValueError(msg)
        return self

    @property
    def date_style(self) -> DateStyle:
        return DateStyle.LONG if self.long_date_style else DateStyle.SHORT


CONTEXT_PRESETS: dict[ContextKind, ContextConfig] = {
    ContextKind.FRIENDS: ContextConfig(
        kind=ContextKind.FRIENDS,
        should_retry=True,
        max_retry_count=2,
        title="Friends",
        primary_action=PrimaryAction.ADD_FRIEND,
    ),
    ContextKind.CARDS: ContextConfig(
        kind=ContextKind.CARDS,
        should_retry=False,
        max_retry_count=0,
        title="Cards",
        primary_action=PrimaryAction.ADD_CARD,
    ),
    ContextKind.SENT_TRANSFERS: ContextConfig(
        kind=ContextKind.SENT_TRANSFERS,
        should_retry=True,
        max_retry_count=1,
        long_date_style=True,
        title="Sent",
        primary_action=PrimaryAction.SEND_MONEY,
    ),
    ContextKind.RECEIVED_TRANSFERS: ContextConfig(
        kind=ContextKind.RECEIVED_TRANSFERS,
        should_retry=True,
        max_retry_count=1,
        long_date_style=False,
        title="Received",
        primary_action=PrimaryAction.REQUEST_MONEY,
    ),
}


def context_for(kind: ContextKind | str) -> ContextConfig:
    """Return the preset configuration for *kind*.

    Raises ``ValueError`` for an unknown kind string.
    """
    return CONTEXT_PRESETS[ContextKind(kind)]
