"""
devmem MCP Server - memory operations for coding assistants.

Exposes decisions, error solutions, context, learnings and sessions as MCP
tools. Cloud sync tools are only listed when a cloud mirror was resolved at
startup.

Usage:
    devmem mcp  # Start MCP server (stdio transport)
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from devmem.config import DevMemConfig, load_config
from devmem.core import MemoryEngine
from devmem.mcp.handlers import HANDLERS, VALIDATORS
from devmem.mcp.tool_definitions import SYNC_TOOL_NAMES, SYNC_TOOLS, TOOLS
from devmem.types import NotFoundError, StorageFault, ValidationError

logger = logging.getLogger(__name__)

# Initialize MCP server
mcp = Server("devmem")

_engine: Optional[MemoryEngine] = None


def set_engine(engine: Optional[MemoryEngine]) -> None:
    """Set the engine serving this MCP session."""
    global _engine
    _engine = engine


def get_engine() -> MemoryEngine:
    """Get the engine, building one from the default config on first use."""
    global _engine
    if _engine is None:
        _engine = MemoryEngine.from_config(load_config())
    return _engine


def available_tools(engine: MemoryEngine) -> List[Tool]:
    if engine.cloud_enabled:
        return list(TOOLS) + list(SYNC_TOOLS)
    return list(TOOLS)


def is_available(name: str, engine: MemoryEngine) -> bool:
    if name in SYNC_TOOL_NAMES:
        return engine.cloud_enabled
    return name in HANDLERS


# =============================================================================
# INPUT VALIDATION & ERROR HANDLING
# =============================================================================


def validate_tool_input(name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and sanitize MCP tool inputs."""
    try:
        if not isinstance(arguments, dict):
            raise ValidationError(f"arguments must be an object, got {type(arguments).__name__}")

        validator = VALIDATORS.get(name)
        if validator is None:
            raise ValidationError(f"Unknown tool: {name}")
        return validator(arguments)

    except (ValueError, TypeError) as e:
        logger.warning(f"Input validation failed for tool {name}: {e}")
        raise ValidationError(str(e)) from e


def handle_tool_error(e: Exception, tool_name: str, arguments: Any) -> List[TextContent]:
    """Turn any exception into a single text block."""
    if isinstance(e, ValueError):
        # Input validation or business rule
        logger.warning(f"Invalid input for tool {tool_name}: {e}")
        return [TextContent(type="text", text=f"Invalid input: {str(e)}")]

    elif isinstance(e, NotFoundError):
        logger.info(f"Not found in tool {tool_name}: {e}")
        return [TextContent(type="text", text=str(e))]

    elif isinstance(e, StorageFault):
        logger.error(f"Storage error in tool {tool_name}: {e}")
        return [TextContent(type="text", text=f"Storage error: {str(e)}")]

    else:
        argument_keys = list(arguments.keys()) if isinstance(arguments, dict) else []
        logger.error(
            f"Internal error in tool {tool_name}",
            extra={
                "tool_name": tool_name,
                "arguments_keys": argument_keys,
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )
        return [TextContent(type="text", text=f"Error: {str(e)}")]


# =============================================================================
# MCP PROTOCOL HANDLERS
# =============================================================================


@mcp.list_tools()
async def list_tools() -> list[Tool]:
    """List available memory tools."""
    return available_tools(get_engine())


@mcp.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls with validation and error handling."""
    try:
        engine = get_engine()
        if not is_available(name, engine):
            logger.warning(f"Call to unknown or unavailable tool: {name}")
            return [TextContent(type="text", text=f"Unknown tool: {name}")]

        sanitized_args = validate_tool_input(name, arguments if arguments is not None else {})
        result = HANDLERS[name](sanitized_args, engine)
        return [TextContent(type="text", text=result)]

    except Exception as e:
        return handle_tool_error(e, name, arguments)


async def run_server():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await mcp.run(
            read_stream,
            write_stream,
            mcp.create_initialization_options(),
        )


def main(config: Optional[DevMemConfig] = None):
    """Entry point for MCP server.

    Opens the store (applying migrations) and resolves the cloud mirror
    before accepting requests; the store is closed on shutdown.
    """
    engine = MemoryEngine.from_config(config or load_config())
    set_engine(engine)
    logger.info(
        f"devmem MCP server running ({engine.store.db_path})"
        f"{' [cloud mirror enabled]' if engine.cloud_enabled else ''}"
    )
    try:
        asyncio.run(run_server())
    finally:
        engine.close()
        set_engine(None)


if __name__ == "__main__":
    main()
