"""Data contracts for the sync core.

- ``IdentityOrigin``: How the session principal was obtained.
- ``Identity``: The resolved session principal.
- ``Scope``: The (namespace, identity) pair addressing one collection.
- ``Record``: One task as materialized from a remote document.
- ``Snapshot``: The ordered, immutable view handed to consumers.
- ``IdAllocator``: Next free local numeric label, derived from record ids.

Pydantic models are frozen; a new Snapshot replaces the old one wholesale
so readers never see a half-updated view.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .store import SERVER_TIMESTAMP, RemoteDocument

_NUMERIC_ID = re.compile(r"[0-9]+")


class IdentityOrigin(str, Enum):
    """How an identity was established."""

    CUSTOM = "custom"
    ANONYMOUS = "anonymous"
    LOCAL_FALLBACK = "local_fallback"


class Identity(BaseModel):
    """The session principal.

    Attributes:
        id: Stable user id used to partition remote data.
        origin: Sign-in path that produced the id.
        id_token: Bearer token issued by the identity provider, if any.
            Never set for ``LOCAL_FALLBACK`` identities.
    """

    id: str = Field(min_length=1)
    origin: IdentityOrigin
    id_token: str | None = Field(default=None, repr=False)

    model_config = {"frozen": True}


@dataclass(frozen=True, slots=True)
class Scope:
    """Address of one logical task collection."""

    namespace: str
    identity_id: str

    @property
    def collection_path(self) -> str:
        return (
            f"artifacts/{self.namespace}/users/{self.identity_id}/tasks"
        )


class Record(BaseModel):
    """A single task.

    Attributes:
        id: Store-assigned document id. Never changes.
        text: Task description.
        completed: Completion flag.
        created_at: Store-assigned creation time. ``None`` while the store
            has not resolved it yet.
    """

    id: str
    text: str = ""
    completed: bool = False
    created_at: datetime | None = None

    model_config = {"frozen": True}

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # Naive and aware datetimes cannot be compared while sorting.
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_document(cls, doc: RemoteDocument) -> Record:
        """Build a Record from its wire shape.

        Raises:
            pydantic.ValidationError: If a field has an unusable type.
        """
        timestamp = doc.data.get("timestamp")
        if timestamp is SERVER_TIMESTAMP:
            timestamp = None
        return cls(
            id=doc.id,
            text=doc.data.get("text", ""),
            completed=doc.data.get("completed", False),
            created_at=timestamp,
        )

    def to_wire(self) -> dict[str, Any]:
        """Return the document body as stored remotely (id excluded)."""
        return {
            "text": self.text,
            "completed": self.completed,
            "timestamp": self.created_at,
        }


def record_sort_key(record: Record) -> tuple:
    """Order by creation time; unresolved times go last, ordered by id."""
    if record.created_at is None:
        return (1, record.id)
    return (0, record.created_at, record.id)


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Authoritative record sequence as of one delivery.

    Attributes:
        records: Records ordered by ``record_sort_key``.
        version: Delivery counter within the owning mirror. Zero means
            nothing has been delivered yet.
    """

    records: tuple[Record, ...] = ()
    version: int = 0

    @classmethod
    def empty(cls) -> Snapshot:
        return cls()

    def get(self, record_id: str) -> Record | None:
        for record in self.records:
            if record.id == record_id:
                return record
        return None

    def ids(self) -> list[str]:
        return [record.id for record in self.records]

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)


class IdAllocator:
    """Process-local numeric label source.

    The bound is one greater than the largest id that looks like a
    non-negative integer, or 0 when no id does. It is recomputed from
    every snapshot and has no effect on remote id assignment.
    """

    def __init__(self) -> None:
        self._bound = 0

    @property
    def bound(self) -> int:
        return self._bound

    def recover(self, ids: Iterable[str]) -> int:
        """Recompute the bound from *ids* and return it."""
        numeric = [int(i) for i in ids if _NUMERIC_ID.fullmatch(i)]
        self._bound = max(numeric) + 1 if numeric else 0
        return self._bound

    def next_label(self) -> str:
        """Return the current bound as a label and advance past it."""
        label = str(self._bound)
        self._bound += 1
        return label
