"""Contract between the sync core and a remote document store.

The core never talks to a network itself. A store implementation
provides:

- ``subscribe(path)`` returning a ``Subscription``: an async iterator of
  ``CollectionEvent`` plus a ``cancel()`` method.
- ``add``, ``update`` and ``delete`` coroutines for writes.

Each ``CollectionEvent`` carries the full document set the store reports
for the collection together with the deltas that produced it. Consumers
rebuild their view from ``documents``; ``changes`` is informational.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class _ServerTimestamp:
    """Placeholder resolved by the store to its own clock."""

    _instance: _ServerTimestamp | None = None

    def __new__(cls) -> _ServerTimestamp:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class ChangeKind(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True, slots=True)
class RemoteDocument:
    """A document as reported by the store: its id and field data."""

    id: str
    data: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DocumentChange:
    kind: ChangeKind
    doc_id: str


@dataclass(frozen=True, slots=True)
class CollectionEvent:
    """One notification from a collection stream."""

    documents: tuple[RemoteDocument, ...]
    changes: tuple[DocumentChange, ...] = ()


@runtime_checkable
class Subscription(Protocol):
    """Cancellable stream of collection events.

    Iteration ends after ``cancel()``. A failing stream raises
    ``SubscriptionError`` from ``__anext__``.
    """

    def __aiter__(self) -> AsyncIterator[CollectionEvent]: ...

    def cancel(self) -> None: ...


@runtime_checkable
class DocumentStore(Protocol):
    """Remote collection store.

    Write methods raise ``StoreError`` (or a subclass) on failure.
    ``delete`` of an absent id succeeds silently; ``update`` of an absent
    id raises ``NotFoundError``.
    """

    def subscribe(self, path: str) -> Subscription: ...

    async def add(self, path: str, data: Mapping[str, Any]) -> str: ...

    async def update(
        self, path: str, doc_id: str, fields: Mapping[str, Any]
    ) -> None: ...

    async def delete(self, path: str, doc_id: str) -> None: ...
