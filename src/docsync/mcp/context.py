"""
MCP Context module for dependency injection.

Provides MCPContext dataclass that encapsulates the services needed by MCP
handlers.
"""

from dataclasses import dataclass

from docsync.core.config import DocsyncConfig
from docsync.infrastructure.vector_store import VectorStoreServiceInterface


@dataclass
class MCPContext:
    """
    Container for the services needed by MCP handlers.

    This context is created once at MCP server startup and passed to all
    handlers.

    Attributes:
        config: Application configuration
        vector_store: Vector store client used by search and fetch
    """

    config: DocsyncConfig
    vector_store: VectorStoreServiceInterface

    @property
    def vector_store_id(self) -> str:
        return self.config.vector_store.vector_store_id


def create_mcp_context() -> MCPContext:
    """
    Create MCPContext from configuration files and environment variables.

    Raises:
        ValueError: If the vector store API key or store id is missing.
    """
    from docsync.core.config import load_config
    from docsync.infrastructure.vector_store import create_vector_store_client

    config = load_config()
    if not config.vector_store.api_key:
        raise ValueError("DOCSYNC_VECTOR_STORE_API_KEY is required for the MCP server")
    if not config.vector_store.vector_store_id:
        raise ValueError("DOCSYNC_VECTOR_STORE_ID is required for the MCP server")

    vector_store = create_vector_store_client(
        api_url=config.vector_store.api_url,
        api_key=config.vector_store.api_key,
        timeout=config.vector_store.timeout,
        max_retries=config.vector_store.max_retries,
    )
    return MCPContext(config=config, vector_store=vector_store)


async def cleanup_context(ctx: MCPContext) -> None:
    """Release connections held by the context's services."""
    await ctx.vector_store.close()
