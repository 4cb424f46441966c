"""MCP tool handlers for docsync."""
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from mcp.types import TextContent

from docsync.infrastructure.vector_store import NotFoundError
from docsync.mcp.context import MCPContext

logger = logging.getLogger(__name__)

FILE_URL_TEMPLATE = "https://platform.openai.com/storage/files/{file_id}"
SNIPPET_LENGTH = 200

# Handler type: takes arguments dict and MCPContext, returns list of TextContent
_HANDLERS: dict[str, Callable[[dict, MCPContext], Awaitable[list[TextContent]]]] = {}


def _register(name: str):
    def decorator(fn):
        _HANDLERS[name] = fn
        return fn
    return decorator


def _json_text(data: Any) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(data))]


def _snippet(text: str) -> str:
    text = text.strip()
    if len(text) <= SNIPPET_LENGTH:
        return text
    return text[:SNIPPET_LENGTH].rstrip() + "..."


async def call_tool(name: str, arguments: Any, ctx: MCPContext) -> list[TextContent]:
    """
    Handle tool calls from MCP clients.

    Args:
        name: The tool name to invoke.
        arguments: Tool arguments as a dictionary.
        ctx: MCPContext containing all required services.

    Returns:
        List of TextContent with the tool result.
    """
    if ctx is None:
        return [TextContent(type="text", text="Error: MCPContext not initialized")]
    try:
        handler = _HANDLERS.get(name)
        if handler:
            return await handler(arguments or {}, ctx)
        return [TextContent(type="text", text=f"Unknown tool: {name}")]
    except Exception as e:
        logger.error(f"Error executing {name}: {e}")
        return [TextContent(type="text", text=f"Error executing {name}: {str(e)}")]


@_register("search")
async def _handle_search(arguments: dict, ctx: MCPContext) -> list[TextContent]:
    query = str(arguments.get("query") or "").strip()
    if not query:
        return _json_text({"results": []})

    limit = ctx.config.vector_store.search_limit
    logger.info(f"Searching {ctx.vector_store_id} for query: '{query}'")
    hits = await ctx.vector_store.search(ctx.vector_store_id, query, limit=limit)

    results = [
        {
            "id": hit.file_id,
            "title": hit.filename or f"Document {i + 1}",
            "text": _snippet(hit.text),
            "url": FILE_URL_TEMPLATE.format(file_id=hit.file_id),
        }
        for i, hit in enumerate(hits)
    ]
    logger.info(f"Vector store search returned {len(results)} results")
    return _json_text({"results": results})


@_register("fetch")
async def _handle_fetch(arguments: dict, ctx: MCPContext) -> list[TextContent]:
    file_id = str(arguments.get("id") or "").strip()
    if not file_id:
        return [TextContent(type="text", text="Error: Document ID is required")]

    try:
        store_file = await ctx.vector_store.retrieve_store_file(ctx.vector_store_id, file_id)
    except NotFoundError:
        return [TextContent(type="text", text=f"Error: Document not found: {file_id}")]

    content = await ctx.vector_store.get_file_content(ctx.vector_store_id, file_id)

    title = f"Document {file_id}"
    try:
        title = (await ctx.vector_store.retrieve_file(file_id)).filename or title
    except NotFoundError:
        logger.debug(f"No file details for {file_id}")

    logger.info(f"Fetched vector store file: {file_id}")
    return _json_text(
        {
            "id": file_id,
            "title": title,
            "text": content or "No content available",
            "url": FILE_URL_TEMPLATE.format(file_id=file_id),
            "metadata": store_file.get("attributes") or None,
        }
    )
