"""Read-side helpers for presenting a Snapshot."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from .models import Record, Snapshot


class TaskFilter(str, Enum):
    ALL = "All"
    ACTIVE = "Active"
    COMPLETED = "Completed"

    @classmethod
    def parse(cls, value: str | None) -> TaskFilter:
        """Case-insensitive lookup; None means ``ALL``.

        Raises:
            ValueError: If *value* names no filter.
        """
        if value is None:
            return cls.ALL
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        choices = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown filter '{value}'. Use one of: {choices}")


def filter_records(
    records: Iterable[Record], task_filter: TaskFilter = TaskFilter.ALL
) -> list[Record]:
    """Return *records* matching *task_filter*, preserving order."""
    match task_filter:
        case TaskFilter.ACTIVE:
            return [r for r in records if not r.completed]
        case TaskFilter.COMPLETED:
            return [r for r in records if r.completed]
        case _:
            return list(records)


def summarize(snapshot: Snapshot) -> dict[str, int]:
    """Counts of all, active and completed records."""
    completed = sum(1 for r in snapshot if r.completed)
    return {
        "total": len(snapshot),
        "active": len(snapshot) - completed,
        "completed": completed,
    }
