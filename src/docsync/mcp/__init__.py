"""
MCP (Model Context Protocol) server package for docsync.

This package provides the MCP search and fetch tools over the synchronized
vector store.
"""

from docsync.mcp.context import MCPContext, cleanup_context, create_mcp_context
from docsync.mcp.handlers import call_tool
from docsync.mcp.tools import list_tools

__all__ = [
    "MCPContext",
    "create_mcp_context",
    "cleanup_context",
    "list_tools",
    "call_tool",
]
