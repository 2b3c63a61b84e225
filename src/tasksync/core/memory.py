"""In-process ``DocumentStore`` implementation.

Keeps collections in dictionaries and pushes a ``CollectionEvent`` to
every live subscription after each write, mirroring how a hosted
document database notifies listeners. Used by the test-suite and by the
MCP server when no remote backend is injected.

Writes are applied in call order. Notifications are queued per
subscription and consumed by whoever iterates it, so delivery is
asynchronous with respect to the write that caused it.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import string
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from ..errors import NotFoundError, SubscriptionError
from .store import (
    SERVER_TIMESTAMP,
    ChangeKind,
    CollectionEvent,
    DocumentChange,
    RemoteDocument,
)

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_letters + string.digits
_ID_LENGTH = 20
_CLOSED = object()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemorySubscription:
    """Queue-backed subscription to one collection path."""

    def __init__(self, store: MemoryStore, path: str) -> None:
        self.path = path
        self.cancel_calls = 0
        self._store = store
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def cancel(self) -> None:
        """Stop delivery. Further calls are counted but do nothing."""
        self.cancel_calls += 1
        if self._closed:
            return
        self._closed = True
        self._store._detach(self)
        self._queue.put_nowait(_CLOSED)

    def _push(self, item: Any) -> None:
        if not self._closed:
            self._queue.put_nowait(item)

    def __aiter__(self) -> MemorySubscription:
        return self

    async def __anext__(self) -> CollectionEvent:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            # A failed stream delivers nothing further.
            self._closed = True
            self._store._detach(self)
            raise item
        return item


class MemoryStore:
    """Dictionary-backed document store.

    Args:
        defer_timestamps: When True, ``SERVER_TIMESTAMP`` fields are first
            delivered as absent and resolved in a follow-up modification,
            the way a hosted store reports pending server writes.
        clock: Callable returning the current aware datetime.
    """

    def __init__(
        self,
        *,
        defer_timestamps: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.defer_timestamps = defer_timestamps
        self._clock = clock
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._subscriptions: dict[str, list[MemorySubscription]] = {}

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, path: str) -> MemorySubscription:
        """Open a subscription; its first event is the current document set."""
        subscription = MemorySubscription(self, path)
        self._subscriptions.setdefault(path, []).append(subscription)
        docs = self.documents(path)
        subscription._push(
            CollectionEvent(
                documents=docs,
                changes=tuple(
                    DocumentChange(ChangeKind.ADDED, d.id) for d in docs
                ),
            )
        )
        logger.debug("Subscription opened on %s", path)
        return subscription

    def active_subscription_count(self, path: str | None = None) -> int:
        """Number of live subscriptions, optionally for one path."""
        if path is not None:
            return len(self._subscriptions.get(path, []))
        return sum(len(subs) for subs in self._subscriptions.values())

    def fail_subscriptions(
        self, path: str, error: Exception | None = None
    ) -> None:
        """Terminate every live subscription on *path* with *error*."""
        exc = error or SubscriptionError(f"Stream for {path} failed")
        for subscription in list(self._subscriptions.get(path, [])):
            subscription._push(exc)

    def _detach(self, subscription: MemorySubscription) -> None:
        subs = self._subscriptions.get(subscription.path, [])
        if subscription in subs:
            subs.remove(subscription)
            logger.debug("Subscription closed on %s", subscription.path)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def documents(self, path: str) -> tuple[RemoteDocument, ...]:
        """Current document set for *path* in insertion order."""
        collection = self._collections.get(path, {})
        return tuple(
            RemoteDocument(id=doc_id, data=dict(data))
            for doc_id, data in collection.items()
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def add(self, path: str, data: Mapping[str, Any]) -> str:
        """Insert a document under a fresh id and return the id."""
        collection = self._collections.setdefault(path, {})
        doc_id = self._new_id(collection)
        body = dict(data)
        pending = [k for k, v in body.items() if v is SERVER_TIMESTAMP]
        for key in pending:
            body[key] = None if self.defer_timestamps else self._clock()
        collection[doc_id] = body
        self._notify(path, DocumentChange(ChangeKind.ADDED, doc_id))

        if pending and self.defer_timestamps:
            asyncio.get_running_loop().call_soon(
                self._resolve_pending, path, doc_id, pending
            )
        return doc_id

    async def set(
        self, path: str, doc_id: str, data: Mapping[str, Any]
    ) -> None:
        """Create or overwrite the document *doc_id*."""
        collection = self._collections.setdefault(path, {})
        kind = ChangeKind.MODIFIED if doc_id in collection else ChangeKind.ADDED
        collection[doc_id] = {
            k: self._clock() if v is SERVER_TIMESTAMP else v
            for k, v in data.items()
        }
        self._notify(path, DocumentChange(kind, doc_id))

    async def update(
        self, path: str, doc_id: str, fields: Mapping[str, Any]
    ) -> None:
        """Merge *fields* into an existing document."""
        collection = self._collections.get(path, {})
        if doc_id not in collection:
            raise NotFoundError(f"No document to update: {path}/{doc_id}")
        body = collection[doc_id]
        for key, value in fields.items():
            body[key] = self._clock() if value is SERVER_TIMESTAMP else value
        self._notify(path, DocumentChange(ChangeKind.MODIFIED, doc_id))

    async def delete(self, path: str, doc_id: str) -> None:
        """Remove a document; absent ids are ignored."""
        collection = self._collections.get(path, {})
        if collection.pop(doc_id, None) is None:
            return
        self._notify(path, DocumentChange(ChangeKind.REMOVED, doc_id))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _resolve_pending(
        self, path: str, doc_id: str, keys: list[str]
    ) -> None:
        body = self._collections.get(path, {}).get(doc_id)
        if body is None:
            return
        now = self._clock()
        for key in keys:
            body[key] = now
        self._notify(path, DocumentChange(ChangeKind.MODIFIED, doc_id))

    def _notify(self, path: str, change: DocumentChange) -> None:
        event = CollectionEvent(
            documents=self.documents(path), changes=(change,)
        )
        for subscription in list(self._subscriptions.get(path, [])):
            subscription._push(event)

    @staticmethod
    def _new_id(collection: Mapping[str, Any]) -> str:
        while True:
            doc_id = "".join(
                secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH)
            )
            if doc_id not in collection:
                return doc_id
