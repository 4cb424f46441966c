"""
MCP Server for docsync.

Provides Model Context Protocol search and fetch tools over the vector store
kept in sync by the webhook pipeline.

The implementation is split across submodules:
- mcp/context.py: MCPContext dataclass and factory functions
- mcp/tools.py: Tool definitions and schemas
- mcp/handlers.py: Tool handler implementations
"""

import asyncio

from dotenv import load_dotenv

# Load .env before the context reads configuration
load_dotenv()

from mcp.server import Server
from mcp.server.stdio import stdio_server

from docsync.core.config import setup_logging
from docsync.mcp.context import MCPContext, cleanup_context, create_mcp_context
from docsync.mcp.handlers import call_tool
from docsync.mcp.tools import list_tools

__all__ = ["app", "list_tools", "call_tool", "main"]

# Initialize MCP server
app = Server("docsync-mcp-server")

# Module-level context, created at startup
_ctx: MCPContext | None = None


@app.list_tools()
async def _list_tools():
    """List available MCP tools."""
    return list_tools()


@app.call_tool()
async def _call_tool(name: str, arguments):
    """Handle tool calls from MCP clients."""
    return await call_tool(name, arguments, _ctx)


async def _run_server():
    """Run the MCP server (async implementation)."""
    global _ctx

    _ctx = create_mcp_context()
    setup_logging(_ctx.config.logging)

    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(read_stream, write_stream, app.create_initialization_options())
    finally:
        if _ctx is not None:
            await cleanup_context(_ctx)
            _ctx = None


def main():
    """Entry point for the MCP server."""
    asyncio.run(_run_server())


if __name__ == "__main__":
    main()
