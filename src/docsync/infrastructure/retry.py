"""Retry configuration and logic shared by the HTTP service clients."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_retries: Maximum number of retry attempts for transient errors.
        base_delay: Initial delay in seconds before first retry.
        max_delay: Maximum delay in seconds between retries.
        exponential_base: Base for exponential backoff calculation.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Backoff delay after the given (zero-based) failed attempt."""
        return min(self.base_delay * (self.exponential_base**attempt), self.max_delay)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig,
    retryable: tuple[type[Exception], ...],
    exhausted_error: type[Exception],
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Execute an operation with exponential backoff retry.

    Only exceptions listed in ``retryable`` are retried; anything else
    propagates immediately.

    Args:
        operation: Async callable to execute
        config: Retry configuration
        retryable: Exception types considered transient
        exhausted_error: Exception type raised once all attempts failed
        sleep: Awaitable sleep function (injectable for tests)

    Returns:
        Result of the operation

    Raises:
        exhausted_error: If all retries are exhausted
    """
    last_error: Optional[Exception] = None

    for attempt in range(config.max_retries + 1):
        try:
            return await operation()
        except retryable as e:
            last_error = e

            if attempt == config.max_retries:
                logger.error(f"All {config.max_retries + 1} attempts failed. Last error: {e}")
                raise exhausted_error(
                    f"Failed after {config.max_retries + 1} attempts: {e}"
                ) from e

            delay = config.delay_for(attempt)
            logger.warning(f"Attempt {attempt + 1} failed: {e}. Retrying in {delay:.1f}s...")

            await sleep(delay)

    # Should not reach here, but just in case
    raise exhausted_error(f"Unexpected retry loop exit: {last_error}")
