# src/stack_track/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

QuestionCache depends on these Protocols instead of concrete implementations,
so the HTTP fetcher and the SQLite store can be swapped for fakes in tests.
"""

from typing import Any, Awaitable, Protocol

from .models import Tag

RawQuestionItem = dict[str, Any]
# One element of the Stack Exchange API "items" array.


class QuestionFetcher(Protocol):
    """
    Async "fetch tag questions" capability.

    Resolves to a list of raw items, or raises (typically FetchError).
    """

    def fetch(self, tag: Tag, quantity: int) -> Awaitable[list[RawQuestionItem]]: ...


class StateStore(Protocol):
    """
    Durable, process-local key -> string mapping.

    Both calls are synchronous. Implementations raise StatePersistenceError on failure.
    """

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
