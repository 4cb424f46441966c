"""
Repository client module for docsync.

Provides the async HTTP client for reading files and diffs from GitHub.
"""

from .client import GitHubClient, create_repository_client
from .errors import NonRetryableError, RepositoryClientError, RetryableError
from .interface import RepositoryClientInterface

__all__ = [
    "RepositoryClientInterface",
    "GitHubClient",
    "create_repository_client",
    "RepositoryClientError",
    "RetryableError",
    "NonRetryableError",
]
