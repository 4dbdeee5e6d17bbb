"""Fixture-backed data sources.

A fixture file is a JSON object with optional ``friends``, ``cards`` and
``transfers`` arrays. Each array is validated into the matching entity
variant. Sources hand their items back asynchronously on a worker pool
(or inline when no executor is given) and can be told to fail their
first *N* loads, which is how the CLI exercises retry and fallback.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from itemscreen.domain.entities import Card, Friend, Transfer, parse_entities
from itemscreen.services.contracts import Completion, DataSources, FetchResult

logger = logging.getLogger(__name__)

_SECTIONS: dict[str, type[Card | Friend | Transfer]] = {
    "friends": Friend,
    "cards": Card,
    "transfers": Transfer,
}


class FixtureError(ValueError):
    """The fixture file is missing, not JSON, or has malformed rows."""


class SourceUnavailable(ConnectionError):
    """A (simulated) remote source could not be reached."""


class FixtureSource[T]:
    """Serves a fixed list of entities, optionally failing the first loads.

    Parameters:
        name: Label used in logs and failure messages.
        items: Entities returned on every successful load.
        executor: Worker pool for asynchronous completion; ``None`` completes inline.
        fail_first: Number of initial loads that report ``SourceUnavailable``.
    """

    def __init__(
        self,
        name: str,
        items: Sequence[T],
        *,
        executor: ThreadPoolExecutor | None = None,
        fail_first: int = 0,
    ) -> None:
        self.name = name
        self._items = tuple(items)
        self._executor = executor
        self._fail_first = max(0, fail_first)
        self.calls = 0

    def load(self, on_complete: Completion[T]) -> None:
        if self._executor is None:
            self._complete(on_complete)
        else:
            self._executor.submit(self._complete, on_complete)

    def _complete(self, on_complete: Completion[T]) -> None:
        self.calls += 1
        if self.calls <= self._fail_first:
            logger.debug("Source %s failing load %d/%d", self.name, self.calls, self._fail_first)
            error = SourceUnavailable(f"{self.name} unavailable (attempt {self.calls})")
            on_complete(FetchResult.failure(error))
            return
        on_complete(FetchResult.success(self._items))


def load_fixture(path: Path) -> dict[str, list[Any]]:
    """Read and validate a fixture file into per-section entity lists."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise FixtureError(f"Fixture not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise FixtureError(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(raw, dict):
        msg = f"Fixture {path} must be a JSON object"
        raise FixtureError(msg)

    fixture: dict[str, list[Any]] = {}
    for section, expected in _SECTIONS.items():
        rows = raw.get(section, [])
        if not isinstance(rows, list):
            msg = f"Section {section} in {path} must be an array"
            raise FixtureError(msg)
        tag = expected.model_fields["type"].default
        # Rows may omit the tag; the section name already says what they are.
        tagged = [{"type": tag, **row} if isinstance(row, dict) else row for row in rows]
        try:
            entities = parse_entities(tagged)
        except ValidationError as exc:
            raise FixtureError(f"Invalid {section} in {path}: {exc}") from exc
        wrong = [e for e in entities if not isinstance(e, expected)]
        if wrong:
            msg = f"Section {section} in {path} holds {type(wrong[0]).__name__} rows"
            raise FixtureError(msg)
        fixture[section] = entities
    return fixture


def build_sources(
    fixture: dict[str, list[Any]],
    *,
    executor: ThreadPoolExecutor | None = None,
    fail_first: int = 0,
) -> DataSources:
    """Wire one :class:`FixtureSource` per section into :class:`DataSources`."""
    return DataSources(
        friends=FixtureSource(
            "friends", fixture.get("friends", []), executor=executor, fail_first=fail_first
        ),
        cards=FixtureSource(
            "cards", fixture.get("cards", []), executor=executor, fail_first=fail_first
        ),
        transfers=FixtureSource(
            "transfers", fixture.get("transfers", []), executor=executor, fail_first=fail_first
        ),
    )
