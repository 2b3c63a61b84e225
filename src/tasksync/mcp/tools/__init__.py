"""MCP tool handlers for task operations.

Handlers receive the running ``SyncCore`` and return structured
``CallToolResult`` responses.
"""

from .errors import build_error_response, format_timestamp
from .registry import (
    READ_ONLY_PERMISSIONS,
    TASK_MODIFY,
    TASK_VIEW,
    ToolRegistry,
    ToolSpec,
)
from .tasks import TASK_SPECS

ALL_SPECS: list[ToolSpec] = list(TASK_SPECS)

__all__ = [
    "ALL_SPECS",
    "READ_ONLY_PERMISSIONS",
    "TASK_MODIFY",
    "TASK_SPECS",
    "TASK_VIEW",
    "ToolRegistry",
    "ToolSpec",
    "build_error_response",
    "format_timestamp",
]
