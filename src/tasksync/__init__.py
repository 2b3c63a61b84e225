"""tasksync: a local mirror of a remote per-user task collection.

The sync core is made of three cooperating pieces:

- ``SessionBootstrapper`` resolves an identity before any data access.
- ``CollectionMirror`` keeps an ordered snapshot of the user's tasks,
  rebuilt from every change notification the remote store pushes.
- ``MutationDispatcher`` turns create/toggle/delete intents into remote
  writes; the local view only changes when the next snapshot arrives.
"""

__version__ = "0.3.0"

from .core import (
    CollectionMirror,
    Identity,
    IdentityOrigin,
    MemoryStore,
    MutationDispatcher,
    Record,
    Scope,
    SessionBootstrapper,
    SessionState,
    Snapshot,
    SyncCore,
)
from .errors import (
    AuthenticationError,
    ConfigurationError,
    MutationError,
    SubscriptionError,
    TaskSyncError,
)

__all__ = [
    "__version__",
    "AuthenticationError",
    "CollectionMirror",
    "ConfigurationError",
    "Identity",
    "IdentityOrigin",
    "MemoryStore",
    "MutationDispatcher",
    "MutationError",
    "Record",
    "Scope",
    "SessionBootstrapper",
    "SessionState",
    "Snapshot",
    "SubscriptionError",
    "SyncCore",
    "TaskSyncError",
]
