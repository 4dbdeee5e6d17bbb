"""Screen context kinds and classification enums.

One ``ContextKind`` replaces the per-screen boolean flags: every list
screen is created for exactly one kind.
"""

from __future__ import annotations

from enum import StrEnum


class ContextKind(StrEnum):
    """The four item kinds a list screen can display."""

    FRIENDS = "friends"
    CARDS = "cards"
    SENT_TRANSFERS = "sent_transfers"
    RECEIVED_TRANSFERS = "received_transfers"

    @property
    def is_transfer(self) -> bool:
        return self in (ContextKind.SENT_TRANSFERS, ContextKind.RECEIVED_TRANSFERS)


class PrimaryAction(StrEnum):
    """Top-bar action offered by each screen."""

    ADD_FRIEND = "add_friend"
    ADD_CARD = "add_card"
    SEND_MONEY = "send_money"
    REQUEST_MONEY = "request_money"


class DateStyle(StrEnum):
    """Verbosity of the date part of a transfer subtitle."""

    LONG = "long"
    SHORT = "short"


class LoadState(StrEnum):
    """Load orchestrator states.

    ``success``, ``cached`` and ``failed`` are terminal for one refresh
    cycle; ``loading``, ``retry_pending`` and ``fallback`` mean a fetch or
    cache read is outstanding.
    """

    IDLE = "idle"
    LOADING = "loading"
    RETRY_PENDING = "retry_pending"
    FALLBACK = "fallback"
    SUCCESS = "success"
    CACHED = "cached"
    FAILED = "failed"

    @property
    def in_flight(self) -> bool:
        return self in (LoadState.LOADING, LoadState.RETRY_PENDING, LoadState.FALLBACK)
