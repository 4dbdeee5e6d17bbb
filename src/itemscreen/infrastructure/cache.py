"""SQLite-backed friends cache.

``save`` replaces the cached list in one transaction and never raises:
it is fire-and-forget, so failures are logged as warnings. ``load_friends``
reports its outcome through the completion callback. When an executor is
given both run on it, which keeps a read issued after a save ordered
behind that save.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError

from itemscreen.domain.entities import Friend
from itemscreen.infrastructure.database.schema import friend_cache
from itemscreen.services.contracts import Completion, FetchResult

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


class SqliteFriendsCache:
    """Cache store for friends in the ``friend_cache`` table.

    Parameters:
        engine: SQLAlchemy engine with the cache schema created.
        executor: Worker for writes and reads; ``None`` runs them inline.
    """

    def __init__(self, engine: Engine, *, executor: ThreadPoolExecutor | None = None) -> None:
        self._engine = engine
        self._executor = executor

    def save(self, friends: Sequence[Friend]) -> None:
        rows = [
            {"position": i, "name": f.name, "phone": f.phone, "cached_at": _now_iso()}
            for i, f in enumerate(friends)
        ]
        if self._executor is None:
            self._write(rows)
            return
        future = self._executor.submit(self._write, rows)
        future.add_done_callback(_log_unexpected)

    def load_friends(self, on_complete: Completion[Friend]) -> None:
        if self._executor is None:
            on_complete(self._read())
            return
        self._executor.submit(lambda: on_complete(self._read()))

    def _write(self, rows: list[dict[str, object]]) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(delete(friend_cache))
                if rows:
                    conn.execute(insert(friend_cache), rows)
        except SQLAlchemyError:
            logger.warning("Friends cache write failed", exc_info=True)
            return
        logger.debug("Cached %d friends", len(rows))

    def _read(self) -> FetchResult[Friend]:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    select(friend_cache.c.name, friend_cache.c.phone).order_by(
                        friend_cache.c.position
                    )
                ).fetchall()
        except SQLAlchemyError as exc:
            return FetchResult.failure(exc)
        return FetchResult.success(Friend(name=r.name, phone=r.phone) for r in rows)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _log_unexpected(future: Future[None]) -> None:
    exc = future.exception()
    if exc is not None:
        logger.warning("Friends cache write crashed: %s", exc)
