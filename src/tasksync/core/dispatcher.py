"""Translate task intents into remote writes.

The dispatcher never touches the local view: the effect of a write, if
any, shows up in a later Snapshot delivered to the ``CollectionMirror``.
Calls made before the session is ready, an empty task text, and a
toggle of an id missing from the current Snapshot are silent no-ops.
Failed writes are logged and reported to the error sink; there is no
retry and nothing to roll back.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..errors import MutationError
from ..validators import validate_task_text
from .mirror import CollectionMirror, ErrorSink
from .models import Scope
from .session import SessionBootstrapper
from .store import SERVER_TIMESTAMP, DocumentStore

logger = logging.getLogger(__name__)


class MutationDispatcher:
    """Issues create/toggle/delete requests for the session's collection."""

    def __init__(
        self,
        store: DocumentStore,
        session: SessionBootstrapper,
        mirror: CollectionMirror,
        error_sink: ErrorSink | None = None,
    ) -> None:
        self._store = store
        self._session = session
        self._mirror = mirror
        self._error_sink = error_sink

    def _active_scope(self, operation: str) -> Scope | None:
        scope = self._session.scope
        if scope is None:
            logger.debug("%s ignored: session not ready", operation)
        return scope

    async def create(self, text: str) -> bool:
        """Submit a new, incomplete task with a store-assigned timestamp."""
        scope = self._active_scope("create")
        if scope is None:
            return False

        is_valid, reason = validate_task_text(text)
        if not is_valid:
            logger.debug("create ignored: %s", reason)
            return False

        data: Mapping[str, Any] = {
            "text": text.strip(),
            "completed": False,
            "timestamp": SERVER_TIMESTAMP,
        }
        try:
            doc_id = await self._store.add(scope.collection_path, data)
        except Exception as e:
            self._report(MutationError(f"Error adding task: {e}", "create"))
            return False
        logger.debug("create accepted as %s", doc_id)
        return True

    async def toggle(self, record_id: str) -> bool:
        """Flip ``completed`` on the record currently held for *record_id*."""
        scope = self._active_scope("toggle")
        if scope is None:
            return False

        record = self._mirror.get(record_id)
        if record is None:
            logger.debug("toggle ignored: %s not in snapshot", record_id)
            return False

        try:
            await self._store.update(
                scope.collection_path,
                record_id,
                {"completed": not record.completed},
            )
        except Exception as e:
            self._report(
                MutationError(
                    f"Error updating task: {e}", "toggle", record_id
                )
            )
            return False
        return True

    async def delete(self, record_id: str) -> bool:
        """Request removal of *record_id*; absent ids are not an error."""
        scope = self._active_scope("delete")
        if scope is None:
            return False

        try:
            await self._store.delete(scope.collection_path, record_id)
        except Exception as e:
            self._report(
                MutationError(
                    f"Error deleting task: {e}", "delete", record_id
                )
            )
            return False
        return True

    def _report(self, error: MutationError) -> None:
        logger.error("%s failed: %s", error.operation, error)
        if self._error_sink is not None:
            try:
                self._error_sink(error)
            except Exception:
                logger.exception("Error sink failed")
