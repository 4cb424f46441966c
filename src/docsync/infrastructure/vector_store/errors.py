"""Exception types for the vector store client."""


class VectorStoreError(Exception):
    """Base exception for vector store client errors."""

    pass


class RetryableError(VectorStoreError):
    """Error that can be retried (rate limits, temporary failures)."""

    pass


class NonRetryableError(VectorStoreError):
    """Error that should not be retried (auth failures, invalid requests)."""

    pass


class NotFoundError(NonRetryableError):
    """The requested vector store, entry or file does not exist.

    Deletions treat this as success: the entry is already gone.
    """

    pass
