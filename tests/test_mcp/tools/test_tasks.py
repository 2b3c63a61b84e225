"""Tests for the task tool handlers, run against a started SyncCore."""

import asyncio

import mcp.types as types
import pytest
from helpers import RecordingStore, task, ticking_clock

from tasksync.config import SessionConfig
from tasksync.core.sync_core import SyncCore
from tasksync.mcp.tools import ALL_SPECS, ToolRegistry

PATH = "artifacts/test-app/users/anon-uid/tasks"


def _text(result: types.CallToolResult) -> str:
    content = result.content[0]
    assert isinstance(content, types.TextContent)
    return content.text


@pytest.fixture
async def core(session_config, provider):
    store = RecordingStore(clock=ticking_clock(100))
    await store.set(PATH, "a", task("Write report", 1))
    await store.set(PATH, "b", task("Buy milk", 2, completed=True))
    await store.set(PATH, "c", task("Call back"))

    core = SyncCore(session_config, store, provider)
    await core.start()
    await core.mirror.wait_for_snapshot(0, timeout=1)
    yield core
    await core.close()


@pytest.fixture
def registry():
    return ToolRegistry(ALL_SPECS)


class TestTaskList:
    async def test_lists_in_creation_order(self, core, registry):
        result = await registry.call_tool("task_list", None, core)

        lines = _text(result).splitlines()
        assert lines[0] == "All tasks (3):"
        assert lines[1].startswith("- [ ] Write report (id: a, created: 2025")
        assert lines[2].startswith("- [x] Buy milk (id: b")
        assert lines[3] == "- [ ] Call back (id: c, created: pending)"

        data = result.structuredContent
        assert data["version"] == 1
        assert data["counts"] == {"total": 3, "active": 2, "completed": 1}
        assert [t["id"] for t in data["tasks"]] == ["a", "b", "c"]
        assert data["tasks"][2]["created_at"] is None

    async def test_filter(self, core, registry):
        result = await registry.call_tool(
            "task_list", {"filter": "completed"}, core
        )
        assert result.structuredContent["filter"] == "Completed"
        assert [t["id"] for t in result.structuredContent["tasks"]] == ["b"]

    async def test_empty_filter_result(self, core, registry):
        await core.store.update(PATH, "b", {"completed": False})
        await core.mirror.wait_for_snapshot(1, timeout=1)

        result = await registry.call_tool(
            "task_list", {"filter": "Completed"}, core
        )

        assert "No tasks found for this filter." in _text(result)

    async def test_unknown_filter(self, core, registry):
        result = await registry.call_tool(
            "task_list", {"filter": "done"}, core
        )
        assert result.isError
        assert "Unknown filter 'done'" in _text(result)


class TestTaskCreate:
    async def test_create_appears_in_later_list(self, core, registry):
        result = await registry.call_tool(
            "task_create", {"text": "  New task "}, core
        )
        assert not result.isError
        assert _text(result).startswith("Task submitted: New task")

        await core.mirror.wait_for_snapshot(1, timeout=1)
        listed = await registry.call_tool("task_list", None, core)
        texts = [t["text"] for t in listed.structuredContent["tasks"]]
        assert texts == ["Write report", "Buy milk", "New task", "Call back"]

    async def test_empty_text_is_validation_error(self, core, registry):
        result = await registry.call_tool("task_create", {"text": " "}, core)
        assert result.isError
        assert "Error (validation_error)" in _text(result)

    async def test_not_ready(self, provider, memory_store, registry):
        idle = SyncCore(SessionConfig(app_id="x"), memory_store, provider)
        result = await registry.call_tool("task_create", {"text": "t"}, idle)
        assert result.isError
        assert "Error (not_ready)" in _text(result)


class TestTaskToggleDelete:
    async def test_toggle(self, core, registry):
        result = await registry.call_tool(
            "task_toggle", {"task_id": "a"}, core
        )
        assert _text(result) == "Task a marked completed."

        snapshot = await core.mirror.wait_for_snapshot(1, timeout=1)
        assert snapshot.get("a").completed is True

    async def test_toggle_unknown(self, core, registry):
        result = await registry.call_tool(
            "task_toggle", {"task_id": "zzz"}, core
        )
        assert result.isError
        assert "Error (not_found)" in _text(result)

    async def test_toggle_rejects_path_like_id(self, core, registry):
        result = await registry.call_tool(
            "task_toggle", {"task_id": "a/b"}, core
        )
        assert "cannot contain '/'" in _text(result)

    async def test_delete(self, core, registry):
        result = await registry.call_tool(
            "task_delete", {"task_id": "b"}, core
        )
        assert _text(result) == "Task b deleted."

        snapshot = await core.mirror.wait_for_snapshot(1, timeout=1)
        assert snapshot.ids() == ["a", "c"]

    async def test_delete_absent_succeeds(self, core, registry):
        result = await registry.call_tool(
            "task_delete", {"task_id": "gone"}, core
        )
        assert not result.isError

    async def test_missing_task_id(self, core, registry):
        result = await registry.call_tool("task_delete", {}, core)
        assert result.isError
        assert "Task id cannot be empty" in _text(result)


class TestSessionInfo:
    async def test_reports_identity_and_mirror(self, core, registry):
        result = await registry.call_tool("session_info", None, core)

        info = result.structuredContent
        assert info["state"] == "ready"
        assert info["identity"] == "anon-uid"
        assert info["origin"] == "anonymous"
        assert info["collection"] == PATH
        assert info["subscribed"] is True
        assert info["snapshot_version"] == 1
        assert "identity: anon-uid" in _text(result)

    async def test_reports_unsubscribed_after_stream_failure(
        self, core, registry
    ):
        core.store.fail_subscriptions(PATH)

        async def _stopped():
            while core.mirror.is_active:
                await asyncio.sleep(0.01)

        await asyncio.wait_for(_stopped(), 1)
        result = await registry.call_tool("session_info", None, core)

        assert result.structuredContent["subscribed"] is False
        assert result.structuredContent["snapshot_version"] == 1
