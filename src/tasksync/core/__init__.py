"""Sync core shared by the library API and the MCP server."""

from .async_utils import run_sync
from .dispatcher import MutationDispatcher
from .identity import IdentityProvider, IdentityToolkitProvider
from .memory import MemoryStore, MemorySubscription
from .mirror import CollectionMirror
from .models import (
    IdAllocator,
    Identity,
    IdentityOrigin,
    Record,
    Scope,
    Snapshot,
    record_sort_key,
)
from .session import SessionBootstrapper, SessionState
from .store import (
    SERVER_TIMESTAMP,
    ChangeKind,
    CollectionEvent,
    DocumentChange,
    DocumentStore,
    RemoteDocument,
    Subscription,
)
from .sync_core import SyncCore
from .view import TaskFilter, filter_records, summarize

__all__ = [
    "SERVER_TIMESTAMP",
    "ChangeKind",
    "CollectionEvent",
    "CollectionMirror",
    "DocumentChange",
    "DocumentStore",
    "IdAllocator",
    "Identity",
    "IdentityOrigin",
    "IdentityProvider",
    "IdentityToolkitProvider",
    "MemoryStore",
    "MemorySubscription",
    "MutationDispatcher",
    "Record",
    "RemoteDocument",
    "Scope",
    "SessionBootstrapper",
    "SessionState",
    "Snapshot",
    "Subscription",
    "SyncCore",
    "TaskFilter",
    "filter_records",
    "record_sort_key",
    "run_sync",
    "summarize",
]
