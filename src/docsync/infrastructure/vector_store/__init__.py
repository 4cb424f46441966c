"""
Vector store client module for docsync.

Provides the async HTTP client for the OpenAI Files and Vector Stores APIs.
"""

from .client import OpenAIVectorStoreClient, create_vector_store_client
from .errors import (
    NonRetryableError,
    NotFoundError,
    RetryableError,
    VectorStoreError,
)
from .interface import StoredFile, StoreSearchHit, VectorStoreServiceInterface

__all__ = [
    "VectorStoreServiceInterface",
    "OpenAIVectorStoreClient",
    "create_vector_store_client",
    "StoredFile",
    "StoreSearchHit",
    "VectorStoreError",
    "RetryableError",
    "NonRetryableError",
    "NotFoundError",
]
