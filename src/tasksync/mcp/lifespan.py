"""Startup and shutdown of the sync core behind the MCP server."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv

from ..config import SessionConfig, load_config
from ..config_loader import discover_config_files, load_hierarchical_config
from ..config_schema import build_config, yaml_fallbacks
from ..core.memory import MemoryStore
from ..core.store import DocumentStore
from ..core.sync_core import SyncCore
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Status line for the operator. stdout belongs to the protocol."""
    print(msg, file=sys.stderr, flush=True)


def _resolve_config(overrides: dict[str, Any]) -> SessionConfig:
    load_dotenv()

    sources = []
    fallbacks: dict[str, Any] | None = None
    config_files = discover_config_files()
    if config_files:
        fallbacks = yaml_fallbacks(build_config(load_hierarchical_config()))
        sources.append(f"config file: {config_files[0]}")

    config = load_config(
        app_id=overrides.get("app_id"),
        store_config=overrides.get("store_config"),
        auth_token=overrides.get("auth_token"),
        debug=overrides.get("debug", False),
        yaml_fallbacks=fallbacks,
    )

    if overrides:
        sources.append("CLI arguments")
    sources.append("environment variables")
    logger.info("Configuration sources: %s", ", ".join(sources))
    _stderr_print(f"  Configuration sources: {', '.join(sources)}")
    return config


@asynccontextmanager
async def sync_lifespan(
    config_overrides: dict[str, Any] | None = None,
    store: DocumentStore | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Bring up a started ``SyncCore`` for the lifetime of the server.

    Settings come from CLI overrides, then the environment (after loading
    ``.env``), then the YAML ``session`` section, then defaults. The
    session is bootstrapped and the mirror subscribed before the context
    is entered; on exit the subscription is cancelled.

    Args:
        config_overrides: CLI values (app_id, store_config, auth_token,
            debug).
        store: Store to mirror. Defaults to an in-process MemoryStore.

    Yields:
        ``{"core": SyncCore}``

    Raises:
        RuntimeError: On a configuration problem, after reporting it on
            stderr.
    """
    logger.info("tasksync MCP server starting")
    _stderr_print("tasksync MCP server starting...")

    try:
        config = _resolve_config(config_overrides or {})
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        raise RuntimeError(f"Configuration error: {e}") from e

    if store is None:
        store = MemoryStore()
        _stderr_print("  Store: in-process memory store")

    core = SyncCore(config, store)
    try:
        identity = await core.start()
    except ConfigurationError as e:
        logger.error("Session bootstrap failed: %s", e)
        _stderr_print(f"ERROR: {e}")
        raise RuntimeError(f"Configuration error: {e}") from e

    _stderr_print(f"  Session ready: {identity.id} ({identity.origin.value})")
    _stderr_print("Server ready. Waiting for MCP client connection...")

    try:
        yield {"core": core}
    finally:
        await core.close()
        logger.info("tasksync MCP server stopped")
        _stderr_print("tasksync MCP server shutting down.")
