"""Result envelope handed from the core to the CLI.

Every command ends by emitting one :class:`ServiceResult`; the output
layer renders it as a Rich table, quiet titles, or JSON.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Machine-readable failure: a stable ``code`` plus human ``message``."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of one command.

    Attributes:
        ok: True when ``data`` is meaningful, False when ``error`` is set.
        op: Operation name such as ``"load_friends"`` or ``"contexts"``.
        data: Operation payload.
        warnings: Non-fatal notes, e.g. that cached items are shown.
        error: Failure details when ``ok`` is False.
        meta: Diagnostics included under ``--verbose``.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None
