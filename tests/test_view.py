"""Tests for core.view: filters and counts over a Snapshot."""

import pytest

from tasksync.core.models import Record, Snapshot
from tasksync.core.view import TaskFilter, filter_records, summarize

SNAPSHOT = Snapshot(
    records=(
        Record(id="1", text="a", completed=False),
        Record(id="2", text="b", completed=True),
        Record(id="3", text="c", completed=False),
    ),
    version=4,
)


class TestTaskFilter:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, TaskFilter.ALL),
            ("All", TaskFilter.ALL),
            ("active", TaskFilter.ACTIVE),
            (" COMPLETED ", TaskFilter.COMPLETED),
        ],
    )
    def test_parse(self, value, expected):
        assert TaskFilter.parse(value) is expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown filter 'done'"):
            TaskFilter.parse("done")


class TestFilterRecords:
    def test_all_preserves_order(self):
        assert [r.id for r in filter_records(SNAPSHOT)] == ["1", "2", "3"]

    def test_active(self):
        result = filter_records(SNAPSHOT, TaskFilter.ACTIVE)
        assert [r.id for r in result] == ["1", "3"]

    def test_completed(self):
        result = filter_records(SNAPSHOT, TaskFilter.COMPLETED)
        assert [r.id for r in result] == ["2"]


def test_summarize():
    assert summarize(SNAPSHOT) == {"total": 3, "active": 2, "completed": 1}


def test_summarize_empty():
    assert summarize(Snapshot.empty()) == {
        "total": 0,
        "active": 0,
        "completed": 0,
    }
