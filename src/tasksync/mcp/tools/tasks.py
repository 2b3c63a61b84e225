"""Task tool handlers for MCP server.

Read tools answer from the mirror's current Snapshot. Write tools go
through the MutationDispatcher, so their effect appears in a later
Snapshot rather than in the tool response.
"""

import logging

import mcp.types as types

from ...core.sync_core import SyncCore
from ...core.view import TaskFilter, filter_records, summarize
from ...validators import validate_task_id, validate_task_text
from .errors import build_error_response, format_timestamp
from .registry import TASK_MODIFY, TASK_VIEW, ToolSpec

logger = logging.getLogger(__name__)

_NOT_READY_ACTION = "Wait for the session to finish signing in, then retry."


def _text(text: str, structured: dict | None = None) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


def _task_id_arg(args: dict) -> str:
    task_id = args.get("task_id")
    is_valid, reason = validate_task_id(task_id)
    if not is_valid:
        raise ValueError(reason)
    return task_id


def _not_ready() -> types.CallToolResult:
    return build_error_response(
        "not_ready", "Session is not ready", _NOT_READY_ACTION
    )


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_list(core: SyncCore, args: dict) -> types.CallToolResult:
    """Handle task_list."""
    task_filter = TaskFilter.parse(args.get("filter"))
    snapshot = core.mirror.snapshot
    records = filter_records(snapshot, task_filter)

    if records:
        lines = [
            f"- [{'x' if r.completed else ' '}] {r.text} "
            f"(id: {r.id}, created: {format_timestamp(r.created_at)})"
            for r in records
        ]
    else:
        lines = ["No tasks found for this filter."]
    header = f"{task_filter.value} tasks ({len(records)}):"

    return _text(
        "\n".join([header, *lines]),
        {
            "filter": task_filter.value,
            "version": snapshot.version,
            "counts": summarize(snapshot),
            "tasks": [
                {
                    "id": r.id,
                    "text": r.text,
                    "completed": r.completed,
                    "created_at": r.created_at.isoformat()
                    if r.created_at
                    else None,
                }
                for r in records
            ],
        },
    )


async def _handle_create(core: SyncCore, args: dict) -> types.CallToolResult:
    """Handle task_create."""
    if not core.session.is_ready:
        return _not_ready()
    text = args.get("text")
    is_valid, reason = validate_task_text(text)
    if not is_valid:
        raise ValueError(reason)

    if not await core.dispatcher.create(text):
        return build_error_response(
            "server_error",
            "The store rejected the new task",
            "Check the server log, then retry.",
        )
    return _text(
        f"Task submitted: {text.strip()}\n"
        "It will appear in task_list once the store confirms it."
    )


async def _handle_toggle(core: SyncCore, args: dict) -> types.CallToolResult:
    """Handle task_toggle."""
    if not core.session.is_ready:
        return _not_ready()
    task_id = _task_id_arg(args)

    record = core.mirror.get(task_id)
    if record is None:
        return build_error_response(
            "not_found",
            f"Task {task_id} is not in the current snapshot",
            "Use task_list to see current task ids.",
        )

    if not await core.dispatcher.toggle(task_id):
        return build_error_response(
            "server_error",
            f"The store rejected the update of task {task_id}",
            "Use task_list to check the task still exists, then retry.",
        )
    state = "active" if record.completed else "completed"
    return _text(f"Task {task_id} marked {state}.")


async def _handle_delete(core: SyncCore, args: dict) -> types.CallToolResult:
    """Handle task_delete."""
    if not core.session.is_ready:
        return _not_ready()
    task_id = _task_id_arg(args)

    if not await core.dispatcher.delete(task_id):
        return build_error_response(
            "server_error",
            f"The store rejected the deletion of task {task_id}",
            "Check the server log, then retry.",
        )
    return _text(f"Task {task_id} deleted.")


async def _handle_session_info(
    core: SyncCore, args: dict
) -> types.CallToolResult:
    """Handle session_info."""
    identity = core.session.identity
    scope = core.session.scope
    info = {
        "state": core.session.state.value,
        "identity": identity.id if identity else None,
        "origin": identity.origin.value if identity else None,
        "namespace": core.config.app_id,
        "collection": scope.collection_path if scope else None,
        "subscribed": core.mirror.is_active,
        "snapshot_version": core.mirror.snapshot.version,
        "id_bound": core.mirror.ids.bound,
    }
    text = "\n".join(f"{k}: {v}" for k, v in info.items())
    return _text(text, info)


# ---------------------------------------------------------------------------
# Specs
# ---------------------------------------------------------------------------

_TASK_ID_SCHEMA = {
    "type": "object",
    "properties": {
        "task_id": {
            "type": "string",
            "description": "Task id as shown by task_list",
        }
    },
    "required": ["task_id"],
}

TASK_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=types.Tool(
            name="task_list",
            description="List tasks in creation order. Tasks whose creation time is still pending are listed last.",
            inputSchema={
                "type": "object",
                "properties": {
                    "filter": {
                        "type": "string",
                        "enum": [f.value for f in TaskFilter],
                        "description": "Which tasks to show (default: All)",
                        "default": "All",
                    }
                },
                "required": [],
            },
        ),
        permissions=frozenset({TASK_VIEW}),
        handler=_handle_list,
    ),
    ToolSpec(
        tool=types.Tool(
            name="task_create",
            description="Create a new, incomplete task.",
            inputSchema={
                "type": "object",
                "properties": {
                    "text": {
                        "type": "string",
                        "description": "Task description (required, non-empty)",
                    }
                },
                "required": ["text"],
            },
        ),
        permissions=frozenset({TASK_MODIFY}),
        handler=_handle_create,
    ),
    ToolSpec(
        tool=types.Tool(
            name="task_toggle",
            description="Flip a task between active and completed.",
            inputSchema=_TASK_ID_SCHEMA,
        ),
        permissions=frozenset({TASK_MODIFY}),
        handler=_handle_toggle,
    ),
    ToolSpec(
        tool=types.Tool(
            name="task_delete",
            description="Delete a task. Deleting an id that no longer exists succeeds.",
            inputSchema=_TASK_ID_SCHEMA,
        ),
        permissions=frozenset({TASK_MODIFY}),
        handler=_handle_delete,
    ),
    ToolSpec(
        tool=types.Tool(
            name="session_info",
            description="Show the session identity, its origin, and the state of the task mirror.",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": [],
            },
        ),
        permissions=frozenset(),
        handler=_handle_session_info,
    ),
]
