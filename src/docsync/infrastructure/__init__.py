"""
Infrastructure Layer - Repository client and vector store client implementations.
"""

from docsync.infrastructure.fakes import (
    FakeRepositoryClient,
    InMemoryVectorStoreService,
)
from docsync.infrastructure.github import (
    GitHubClient,
    RepositoryClientError,
    RepositoryClientInterface,
    create_repository_client,
)
from docsync.infrastructure.retry import RetryConfig, with_retry
from docsync.infrastructure.vector_store import (
    NonRetryableError,
    NotFoundError,
    OpenAIVectorStoreClient,
    RetryableError,
    StoredFile,
    StoreSearchHit,
    VectorStoreError,
    VectorStoreServiceInterface,
    create_vector_store_client,
)

__all__ = [
    # Repository client
    "RepositoryClientInterface",
    "GitHubClient",
    "RepositoryClientError",
    "create_repository_client",
    # Vector store
    "VectorStoreServiceInterface",
    "OpenAIVectorStoreClient",
    "StoredFile",
    "StoreSearchHit",
    "VectorStoreError",
    "RetryableError",
    "NonRetryableError",
    "NotFoundError",
    "create_vector_store_client",
    # Retry
    "RetryConfig",
    "with_retry",
    # Fakes for testing
    "InMemoryVectorStoreService",
    "FakeRepositoryClient",
]
