"""User session backed by a fixed premium flag (CLI and settings driven)."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StaticUser:
    """A signed-in user whose tier never changes during the process."""

    is_premium: bool = False
