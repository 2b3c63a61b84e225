"""Composition of the session, mirror and dispatcher for one session."""

from __future__ import annotations

import logging

from ..config import SessionConfig
from .dispatcher import MutationDispatcher
from .identity import IdentityProvider
from .mirror import CollectionMirror, ErrorSink
from .models import Identity
from .session import SessionBootstrapper
from .store import DocumentStore

logger = logging.getLogger(__name__)


class SyncCore:
    """Wires ``SessionBootstrapper``, ``CollectionMirror`` and
    ``MutationDispatcher`` around one store.

    Usage::

        async with SyncCore(config, store) as core:
            await core.dispatcher.create("Write report")
            snapshot = await core.mirror.wait_for_snapshot()
    """

    def __init__(
        self,
        config: SessionConfig,
        store: DocumentStore,
        provider: IdentityProvider | None = None,
        error_sink: ErrorSink | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.session = SessionBootstrapper(config, provider)
        self.mirror = CollectionMirror(store, error_sink)
        self.dispatcher = MutationDispatcher(
            store, self.session, self.mirror, error_sink
        )

    async def start(self) -> Identity:
        """Bootstrap the session, then open the mirror for its scope.

        Raises:
            ConfigurationError: If the session cannot be bootstrapped.
        """
        identity = await self.session.start()
        await self.mirror.activate(self.session.scope)
        return identity

    async def close(self) -> None:
        await self.mirror.deactivate()

    async def __aenter__(self) -> SyncCore:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
