"""Pluggy hook specifications for itemscreen load lifecycle events.

Hooks fire on the orchestrator's execution context, after the state
change they describe and before the presenter is notified.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("itemscreen")
hookimpl = pluggy.HookimplMarker("itemscreen")


class ItemScreenHookSpec:
    """Hook specifications for the itemscreen plugin system."""

    @hookspec
    def post_load(self, kind: str, count: int, origin: str) -> None:
        """Called after items were projected; *origin* is ``live`` or ``cache``."""

    @hookspec
    def post_retry(self, kind: str, attempt: int) -> None:
        """Called before a failed fetch is reissued."""

    @hookspec
    def post_load_failed(self, kind: str, error: str, attempts: int) -> None:
        """Called when a refresh cycle ends in an error."""
