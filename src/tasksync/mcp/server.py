"""MCP server exposing the task mirror over stdio.

The server bootstraps one session, keeps its task collection mirrored for
the lifetime of the process, and serves tool calls from that mirror.
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..config_loader import discover_config_files, load_hierarchical_config
from ..config_schema import LoggingConfig, build_config
from ..core.sync_core import SyncCore
from ..logger import setup_logging
from .lifespan import sync_lifespan
from .tools import (
    ALL_SPECS,
    READ_ONLY_PERMISSIONS,
    ToolRegistry,
    build_error_response,
)

logger = logging.getLogger(__name__)

server = Server("tasksync")

# Set by main() for the lifetime of the stdio session
_core: SyncCore | None = None
_registry: ToolRegistry | None = None


def get_core() -> SyncCore:
    """The running SyncCore.

    Raises:
        RuntimeError: Outside the server lifespan.
    """
    if _core is None:
        raise RuntimeError(
            "SyncCore not initialized. Server lifespan not started."
        )
    return _core


def set_core(core: SyncCore | None) -> None:
    global _core
    _core = core


def get_registry() -> ToolRegistry:
    """The registry built by main().

    Raises:
        RuntimeError: Before main() has built it.
    """
    if _registry is None:
        raise RuntimeError("Tool registry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Route a tool call through the registry."""
    core = get_core()
    try:
        return await get_registry().call_tool(name, arguments, core)
    except ValueError as e:
        return build_error_response(
            "unknown_tool",
            str(e),
            "List the tools to see which ones this server exposes.",
        )


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


def _file_logging_config() -> LoggingConfig:
    """The ``logging`` section of the config files, or defaults."""
    if not discover_config_files():
        return LoggingConfig()
    return build_config(load_hierarchical_config()).logging


async def main(config_overrides: dict | None = None):
    """Serve MCP over stdio until the client disconnects.

    *config_overrides* holds CLI values: app_id, store_config, auth_token,
    debug, plus log_file and read_only which are consumed here.
    """
    overrides = dict(config_overrides or {})
    log_file = overrides.pop("log_file", None)
    read_only = overrides.pop("read_only", False)
    file_logging = _file_logging_config()

    # Must run before stdio_server so nothing reaches stdout
    setup_logging(
        mode="mcp",
        log_file=log_file or file_logging.file,
        debug=overrides.get("debug", False),
        level=file_logging.level,
    )

    registry = ToolRegistry(
        ALL_SPECS, READ_ONLY_PERMISSIONS if read_only else None
    )
    logger.info(
        "Exposing %d of %d tools",
        registry.tool_count(),
        len(ALL_SPECS),
    )
    set_registry(registry)

    async with sync_lifespan(config_overrides=overrides or None) as ctx:
        set_core(ctx["core"])
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="tasksync",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(read_stream, write_stream, init_options)
        finally:
            set_core(None)
            set_registry(None)


def run() -> None:
    """Console entry point: parse arguments and run the server."""
    parser = argparse.ArgumentParser(
        description="tasksync MCP server - mirror a per-user task collection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with settings from .env or .tasksync/config.yml
  tasksync-mcp

  # Override the namespace and connection descriptor
  tasksync-mcp --app-id my-app --store-config '{"apiKey": "..."}'

  # Expose read-only tools
  tasksync-mcp --read-only

Note: This server uses stdio transport. All user-facing messages are
written to stderr.
        """,
    )
    parser.add_argument(
        "--app-id",
        help="Namespace for stored data (overrides TASKSYNC_APP_ID)",
    )
    parser.add_argument(
        "--store-config",
        help="JSON connection descriptor with at least an apiKey "
        "(overrides TASKSYNC_STORE_CONFIG)",
    )
    parser.add_argument(
        "--auth-token",
        help="Pre-issued custom sign-in token "
        "(overrides TASKSYNC_INITIAL_AUTH_TOKEN)",
    )
    parser.add_argument(
        "--log-file",
        help="Log file path (default: LOG_FILE, the config file, "
        "or /tmp/tasksync.log)",
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Only expose tools that read the task mirror",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"tasksync version {__version__}",
    )

    args = parser.parse_args()

    config_overrides = {}
    if args.app_id:
        config_overrides["app_id"] = args.app_id
    if args.store_config:
        config_overrides["store_config"] = args.store_config
    if args.auth_token:
        config_overrides["auth_token"] = args.auth_token
    if args.log_file:
        config_overrides["log_file"] = args.log_file
    if args.read_only:
        config_overrides["read_only"] = True
    if args.debug:
        config_overrides["debug"] = True

    try:
        asyncio.run(main(config_overrides=config_overrides or None))
    except RuntimeError:
        # sync_lifespan has already reported the cause on stderr
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
