"""Serialized execution contexts for completion callbacks.

The orchestrator owns its mutable state on exactly one execution
context. Collaborators may call back from any thread; every callback is
hopped onto the owning context with :meth:`ExecutionContext.run`, which
runs the function inline when the caller is already on that context and
enqueues it otherwise.

Two implementations:

- :class:`InlineContext` — the calling thread is the owner (``--sync``,
  unit tests with synchronous fakes).
- :class:`SerialContext` — a single-worker ``ThreadPoolExecutor`` is the
  owner. :meth:`SerialContext.drain` waits for queued work and re-raises
  task exceptions so fatal errors are never lost inside a Future.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Protocol

logger = logging.getLogger(__name__)


class ExecutionContext(Protocol):
    """Where orchestrator state is read and written."""

    def run(self, fn: Callable[[], None]) -> None: ...

    def is_current(self) -> bool: ...


class InlineContext:
    """Run everything immediately on the caller's thread."""

    def run(self, fn: Callable[[], None]) -> None:
        fn()

    def is_current(self) -> bool:
        return True


class SerialContext:
    """A dedicated owner thread with run-here-if-already-here dispatch.

    Parameters:
        name: Thread name prefix for the owner thread.
    """

    def __init__(self, *, name: str = "itemscreen-main") -> None:
        self._executor: ThreadPoolExecutor | None = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=name
        )
        self._owner_ident = self._executor.submit(threading.get_ident).result()
        # Only unfinished tasks and unreported failures are held.
        self._pending: set[Future[None]] = set()
        self._failures: list[BaseException] = []
        self._lock = threading.Lock()

    def is_current(self) -> bool:
        return threading.get_ident() == self._owner_ident

    def run(self, fn: Callable[[], None]) -> None:
        """Run *fn* now if on the owner thread, else enqueue it there."""
        if self.is_current():
            fn()
            return
        if self._executor is None:
            logger.debug("Dropping callback submitted after shutdown")
            return
        future = self._executor.submit(fn)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def drain(self, timeout: float = 30.0) -> None:
        """Wait for all queued work, then re-raise the oldest task exception.

        Work enqueued by drained tasks is waited for as well. Each failure
        is raised by exactly one ``drain()`` call, so several failures take
        several calls.

        Raises:
            TimeoutError: Queued work did not finish within *timeout* seconds.
        """
        if self.is_current():
            msg = "drain() would deadlock when called on the owner thread"
            raise RuntimeError(msg)
        while True:
            with self._lock:
                pending = list(self._pending)
            if not pending:
                break
            done, not_done = wait(pending, timeout=timeout)
            for future in done:
                self._forget(future)
            if not_done:
                msg = f"{len(not_done)} queued task(s) still running after {timeout}s"
                raise TimeoutError(msg)
        with self._lock:
            if self._failures:
                raise self._failures.pop(0)

    def _forget(self, future: Future[None]) -> None:
        with self._lock:
            if future not in self._pending:
                return
            self._pending.discard(future)
            if not future.cancelled() and future.exception() is not None:
                self._failures.append(future.exception())

    def shutdown(self) -> None:
        """Stop the owner thread after queued work completes."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
