"""Live, ordered local view of one remote task collection.

The mirror owns at most one subscription. Every event from it rebuilds
the Snapshot from the full document set the store reports; deltas are
never applied by hand. The rebuilt records are sorted by creation time
(unresolved times last, by id), the Snapshot is swapped in wholesale,
and the ``IdAllocator`` bound is recomputed from the new ids.

A failed stream is logged and reported to the error sink. The mirror
becomes inactive, the last Snapshot stays in place and nothing is
retried.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from pydantic import ValidationError

from ..errors import SubscriptionError, TaskSyncError
from .models import IdAllocator, Record, Scope, Snapshot, record_sort_key
from .store import CollectionEvent, DocumentStore, Subscription

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[Snapshot], None]
ErrorSink = Callable[[TaskSyncError], None]


class CollectionMirror:
    """Maintains the Snapshot for the active scope.

    Args:
        store: Remote store to subscribe to.
        error_sink: Optional callable receiving ``SubscriptionError``s in
            addition to the log.
    """

    def __init__(
        self,
        store: DocumentStore,
        error_sink: ErrorSink | None = None,
    ) -> None:
        self._store = store
        self._error_sink = error_sink
        self._snapshot = Snapshot.empty()
        self._ids = IdAllocator()
        self._scope: Scope | None = None
        self._subscription: Subscription | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._listeners: list[SnapshotListener] = []
        self._changed = asyncio.Event()
        self._lifecycle = asyncio.Lock()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def scope(self) -> Scope | None:
        return self._scope

    @property
    def is_active(self) -> bool:
        return self._subscription is not None

    @property
    def ids(self) -> IdAllocator:
        return self._ids

    def get(self, record_id: str) -> Record | None:
        """Return the record for *record_id* in the current Snapshot."""
        return self._snapshot.get(record_id)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: SnapshotListener) -> None:
        """Register a callback invoked with each new Snapshot."""
        self._listeners.append(listener)

    def remove_listener(self, listener: SnapshotListener) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(listener)

    async def wait_for_snapshot(
        self,
        after_version: int | None = None,
        timeout: float | None = None,
    ) -> Snapshot:
        """Wait for a Snapshot newer than *after_version*.

        Defaults to the current version, i.e. waits for the next delivery.

        Raises:
            asyncio.TimeoutError: If *timeout* elapses first.
        """
        target = (
            self._snapshot.version if after_version is None else after_version
        )

        async def _wait() -> Snapshot:
            while self._snapshot.version <= target:
                await self._changed.wait()
            return self._snapshot

        return await asyncio.wait_for(_wait(), timeout)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def activate(self, scope: Scope | None) -> bool:
        """Open the subscription for *scope*.

        Any live subscription is cancelled first. Returns False, without
        subscribing, when no scope is available yet.
        """
        if scope is None:
            logger.warning("Mirror activation skipped: session not ready")
            return False

        async with self._lifecycle:
            await self._unsubscribe()
            self._subscribe(scope)
        return True

    async def deactivate(self) -> None:
        """Cancel the live subscription. No-op when inactive."""
        async with self._lifecycle:
            await self._unsubscribe()

    def _subscribe(self, scope: Scope) -> None:
        if scope != self._scope:
            self._snapshot = Snapshot.empty()
            self._ids = IdAllocator()
        self._scope = scope

        path = scope.collection_path
        subscription = self._store.subscribe(path)
        self._subscription = subscription
        self._consumer = asyncio.ensure_future(self._consume(subscription))
        logger.info("Mirror subscribed to %s", path)

    async def _unsubscribe(self) -> None:
        subscription, consumer = self._subscription, self._consumer
        self._subscription = None
        self._consumer = None
        if subscription is None:
            return

        subscription.cancel()
        if consumer is not None and not consumer.done():
            consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await consumer
        logger.info(
            "Mirror unsubscribed from %s",
            self._scope.collection_path if self._scope else "?",
        )

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def _consume(self, subscription: Subscription) -> None:
        try:
            async for event in subscription:
                self._apply(event)
        except SubscriptionError as e:
            self._drop(subscription)
            self._report(e)
        except Exception as e:
            self._drop(subscription)
            self._report(SubscriptionError(str(e)))

    def _drop(self, subscription: Subscription) -> None:
        # Only the current handle; a replaced one is already detached.
        if self._subscription is subscription:
            self._subscription = None
            self._consumer = None

    def _apply(self, event: CollectionEvent) -> None:
        records = []
        for doc in event.documents:
            try:
                records.append(Record.from_document(doc))
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed document %s: %s", doc.id, e
                )
        records.sort(key=record_sort_key)

        snapshot = Snapshot(
            records=tuple(records), version=self._snapshot.version + 1
        )
        self._snapshot = snapshot
        self._ids.recover(snapshot.ids())
        logger.debug(
            "Snapshot v%d: %d records, id bound %d",
            snapshot.version,
            len(snapshot),
            self._ids.bound,
        )

        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener failed")

        self._changed.set()
        self._changed = asyncio.Event()

    def _report(self, error: SubscriptionError) -> None:
        logger.error(
            "Task snapshot stream failed for %s: %s",
            self._scope.collection_path if self._scope else "?",
            error,
        )
        if self._error_sink is not None:
            try:
                self._error_sink(error)
            except Exception:
                logger.exception("Error sink failed")
