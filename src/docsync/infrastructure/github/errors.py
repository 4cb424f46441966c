"""Exception types for the repository (GitHub) client."""


class RepositoryClientError(Exception):
    """Base exception for repository client errors."""

    pass


class RetryableError(RepositoryClientError):
    """Error that can be retried (rate limits, temporary failures)."""

    pass


class NonRetryableError(RepositoryClientError):
    """Error that should not be retried (auth failures, missing files)."""

    pass
