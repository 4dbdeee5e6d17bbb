"""Error taxonomy for the load pipeline.

- ``TransientFetchError``: a data source failed. Retried locally, then
  surfaced to the presenter once retries (and any fallback) are exhausted.
- ``CacheUnavailable``: the fallback cache read failed or came back empty.
  Logged and swallowed in favour of the original fetch error.
- ``UnsupportedEntityKind``: the projector got something outside the
  entity union. A caller contract violation; never recovered.
- ``InvalidAmountError``: a transfer amount that cannot be rendered.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from itemscreen.domain.types import ContextKind


class ItemScreenError(Exception):
    """Base class for itemscreen errors."""


class TransientFetchError(ItemScreenError):
    """A data source reported a failure for *kind* after *attempts* fetches."""

    def __init__(self, kind: ContextKind, attempts: int, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.attempts = attempts

    @classmethod
    def wrap(cls, error: BaseException, kind: ContextKind, attempts: int) -> TransientFetchError:
        """Wrap a source exception, keeping it as ``__cause__``.

        A source that already raised ``TransientFetchError`` is wrapped too,
        so ``attempts`` always counts the fetches this screen made.
        """
        wrapped = cls(kind, attempts, str(error) or error.__class__.__name__)
        wrapped.__cause__ = error
        return wrapped


class CacheUnavailable(ItemScreenError):
    """The fallback cache could not supply any friends."""


class UnsupportedEntityKind(ItemScreenError, TypeError):
    """The projector received a value outside ``Card | Friend | Transfer``."""

    def __init__(self, entity: object) -> None:
        super().__init__(f"Cannot project entity of type {type(entity).__name__}")
        self.entity = entity


class InvalidAmountError(ItemScreenError, ValueError):
    """A currency amount that cannot be represented as a display string."""
