"""Domain entities shown on list screens.

``Entity`` is a closed tagged union over :class:`Card`, :class:`Friend`
and :class:`Transfer`, discriminated on the literal ``type`` field so that
fixture files and cache rows validate straight into the right variant.
Adding a fourth variant means extending the union *and* every ``match``
over it; a type checker flags the unhandled arm.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter


class Card(BaseModel):
    """A payment card owned by the current user."""

    model_config = {"frozen": True}

    type: Literal["card"] = "card"
    number: str
    holder: str


class Friend(BaseModel):
    """A contact the user can send money to."""

    model_config = {"frozen": True}

    type: Literal["friend"] = "friend"
    name: str
    phone: str


class Transfer(BaseModel):
    """A money transfer; ``is_sender`` is True when the current user sent it."""

    model_config = {"frozen": True}

    type: Literal["transfer"] = "transfer"
    amount: Decimal
    currency_code: str
    description: str
    date: datetime
    sender: str
    recipient: str
    is_sender: bool


Entity = Annotated[Card | Friend | Transfer, Field(discriminator="type")]

ENTITY_LIST_ADAPTER: TypeAdapter[list[Entity]] = TypeAdapter(list[Entity])


def parse_entities(data: object) -> list[Card | Friend | Transfer]:
    """Validate raw JSON-like data into a list of entities.

    Raises ``pydantic.ValidationError`` for unknown ``type`` tags or
    malformed rows.
    """
    return ENTITY_LIST_ADAPTER.validate_python(data)
