"""Tool registration and dispatch for the MCP server.

A ``ToolSpec`` pairs an MCP ``Tool`` with the permissions it needs and the
coroutine that serves it. ``ToolRegistry`` keeps the specs a server is
allowed to expose and routes calls to them.

Two permissions exist: ``TASK_VIEW`` for tools that read the mirrored
snapshot and ``TASK_MODIFY`` for tools that issue writes. A server started
with ``--read-only`` is built with ``READ_ONLY_PERMISSIONS``.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import mcp.types as types

from ...core.sync_core import SyncCore
from .errors import build_error_response

logger = logging.getLogger(__name__)

TASK_VIEW = "TASK_VIEW"
TASK_MODIFY = "TASK_MODIFY"
READ_ONLY_PERMISSIONS = frozenset({TASK_VIEW})

ToolHandler = Callable[[SyncCore, dict], Awaitable[types.CallToolResult]]


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """One exposed tool.

    Attributes:
        tool: Name, description and input schema sent to the client.
        permissions: Required permissions; empty means always exposed.
        handler: Coroutine called as ``handler(core, args)``.
    """

    tool: types.Tool
    permissions: frozenset[str]
    handler: ToolHandler

    def permitted(self, allowed: frozenset[str] | None) -> bool:
        if allowed is None or not self.permissions:
            return True
        return self.permissions <= allowed


class ToolRegistry:
    """The set of tools one server exposes, keyed by name.

    ``allowed_permissions=None`` exposes every spec.
    """

    def __init__(
        self,
        specs: list[ToolSpec],
        allowed_permissions: frozenset[str] | None = None,
    ):
        self._by_name: dict[str, ToolSpec] = {
            spec.tool.name: spec
            for spec in specs
            if spec.permitted(allowed_permissions)
        }

    def list_tools(self) -> list[types.Tool]:
        return [spec.tool for spec in self._by_name.values()]

    def tool_count(self) -> int:
        return len(self._by_name)

    async def call_tool(
        self,
        name: str,
        arguments: dict | None,
        core: SyncCore,
    ) -> types.CallToolResult:
        """Run the handler registered under *name*.

        A ``ValueError`` from the handler becomes a ``validation_error``
        response; any other exception becomes a logged ``server_error``.

        Raises:
            ValueError: If *name* is not exposed by this registry.
        """
        spec = self._by_name.get(name)
        if spec is None:
            raise ValueError(f"Unknown tool: {name}")

        try:
            return await spec.handler(core, arguments or {})
        except ValueError as e:
            return build_error_response(
                "validation_error",
                str(e),
                "Fix the arguments and call the tool again.",
            )
        except Exception as e:
            logger.exception("Tool %s raised", name)
            return build_error_response(
                "server_error",
                str(e),
                "Retry later or check the server log.",
            )
