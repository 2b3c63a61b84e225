"""Exception taxonomy for tasksync.

Only ``ConfigurationError`` escapes public operations. Every other error
is caught at the component boundary, logged, and handed to the optional
error sink so the caller keeps working with the last known state.
"""


class TaskSyncError(Exception):
    """Base class for all tasksync errors."""


class ConfigurationError(TaskSyncError, ValueError):
    """Missing or invalid connection settings. Fatal to bootstrap."""


class AuthenticationError(TaskSyncError):
    """A sign-in attempt failed."""


class StoreError(TaskSyncError):
    """A remote store call failed."""


class NotFoundError(StoreError):
    """The targeted document does not exist."""


class SubscriptionError(TaskSyncError):
    """The live collection stream failed."""


class MutationError(TaskSyncError):
    """A create, update or delete request failed.

    Attributes:
        operation: One of ``create``, ``toggle``, ``delete``.
        record_id: Target document id, or None for creates.
    """

    def __init__(
        self,
        message: str,
        operation: str,
        record_id: str | None = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.record_id = record_id
