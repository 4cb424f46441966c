"""
MCP tool definitions for docsync.

Defines the available tools and their schemas for the MCP interface.
"""

from mcp.types import Tool

SEARCH_MIN_QUERY_LENGTH = 2


def list_tools() -> list[Tool]:
    """List available MCP tools."""
    return [
        Tool(
            name="search",
            description=(
                "Search for documents using OpenAI Vector Store search.\n"
                "This tool searches through the vector store to find semantically relevant "
                "matches. Returns a list of search results with basic information. Use the "
                "fetch tool to get complete document content."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "minLength": SEARCH_MIN_QUERY_LENGTH,
                        "description": "Search query string. Natural language queries work best for semantic search.",
                    },
                },
                "required": ["query"],
            },
        ),
        Tool(
            name="fetch",
            description="Fetch complete document content by ID.",
            inputSchema={
                "type": "object",
                "properties": {
                    "id": {
                        "type": "string",
                        "description": "File ID from vector store (file-xxx)",
                    },
                },
                "required": ["id"],
            },
        ),
    ]
