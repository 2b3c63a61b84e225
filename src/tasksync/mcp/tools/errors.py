"""Error responses and display helpers shared by the tool handlers."""

from datetime import datetime

import mcp.types as types


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Return an ``isError`` result telling the agent what went wrong and
    what to do next.

    *error_type* is one of ``not_ready``, ``not_found``,
    ``validation_error``, ``server_error`` or ``unknown_tool``.

    The text reads ``Error (not_found): Task x not found`` followed by a
    blank line and ``Action: Run task_list.``
    """
    text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        isError=True,
    )


def format_timestamp(timestamp: datetime | None) -> str:
    """Minute-precision creation time; unresolved times show as pending."""
    if timestamp is None:
        return "pending"
    return timestamp.strftime("%Y-%m-%d %H:%M")
