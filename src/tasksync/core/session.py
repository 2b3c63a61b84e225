"""Session bootstrap: resolve one identity before any data access.

State machine::

    UNINITIALIZED --start()--> RESOLVING --> READY

``READY`` is reached exactly once and never left. Sign-in failures are
absorbed: the custom token is tried first (when configured), then
anonymous sign-in, and if both fail a random UUID is used as a
``LOCAL_FALLBACK`` identity. Only a missing store descriptor stops the
bootstrap, with ``ConfigurationError``.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from enum import Enum

from ..config import SessionConfig
from ..errors import ConfigurationError
from .async_utils import run_sync
from .identity import IdentityProvider, IdentityToolkitProvider
from .models import Identity, IdentityOrigin, Scope

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    RESOLVING = "resolving"
    READY = "ready"


class SessionBootstrapper:
    """Owns the identity lifecycle for one session.

    Args:
        config: Session settings. ``config.store`` must be set.
        provider: Identity provider; defaults to an
            ``IdentityToolkitProvider`` built from ``config.store``.
    """

    def __init__(
        self,
        config: SessionConfig,
        provider: IdentityProvider | None = None,
    ) -> None:
        self.config = config
        self._provider = provider
        self._state = SessionState.UNINITIALIZED
        self._identity: Identity | None = None
        self._ready = asyncio.Event()
        self._resolving: asyncio.Task[Identity] | None = None
        self._callbacks: list[Callable[[Identity], None]] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def is_ready(self) -> bool:
        return self._state is SessionState.READY

    @property
    def scope(self) -> Scope | None:
        """The data scope, or None until the session is ready."""
        if self._identity is None:
            return None
        return Scope(
            namespace=self.config.app_id, identity_id=self._identity.id
        )

    def on_ready(self, callback: Callable[[Identity], None]) -> None:
        """Call *callback* with the identity once the session is ready.

        Runs immediately when the session is already ready.
        """
        if self._identity is not None:
            self._invoke(callback, self._identity)
        else:
            self._callbacks.append(callback)

    async def wait_ready(self, timeout: float | None = None) -> Identity:
        """Wait for ``READY`` and return the identity.

        Raises:
            asyncio.TimeoutError: If *timeout* elapses first.
        """
        await asyncio.wait_for(self._ready.wait(), timeout)
        assert self._identity is not None
        return self._identity

    async def start(self) -> Identity:
        """Resolve the session identity.

        Idempotent: later and concurrent calls share the first resolution.

        Raises:
            ConfigurationError: If the store descriptor is missing.
        """
        if self._identity is not None:
            return self._identity
        if self._resolving is None:
            self._check_config()
            self._state = SessionState.RESOLVING
            self._resolving = asyncio.ensure_future(self._resolve())
        return await asyncio.shield(self._resolving)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_config(self) -> None:
        if self.config.store is None:
            logger.error("Store configuration is missing or invalid")
            raise ConfigurationError(
                "Store configuration is missing. "
                "Set TASKSYNC_STORE_CONFIG with at least an apiKey."
            )
        if self._provider is None:
            self._provider = IdentityToolkitProvider(self.config.store)

    async def _resolve(self) -> Identity:
        identity = await self._sign_in()
        self._identity = identity
        self._state = SessionState.READY
        self._ready.set()
        logger.info(
            "Session ready: identity=%s origin=%s",
            identity.id,
            identity.origin.value,
        )

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            self._invoke(callback, identity)
        return identity

    async def _sign_in(self) -> Identity:
        assert self._provider is not None
        token = self.config.initial_auth_token

        if token:
            try:
                return await run_sync(
                    self._provider.sign_in_with_custom_token, token
                )
            except Exception as e:
                logger.warning("Custom token sign-in failed: %s", e)

        try:
            return await run_sync(self._provider.sign_in_anonymously)
        except Exception as e:
            logger.error(
                "Sign-in failed, continuing with a local identity: %s", e
            )

        return Identity(
            id=str(uuid.uuid4()), origin=IdentityOrigin.LOCAL_FALLBACK
        )

    @staticmethod
    def _invoke(
        callback: Callable[[Identity], None], identity: Identity
    ) -> None:
        try:
            callback(identity)
        except Exception:
            logger.exception("Session ready callback failed")
