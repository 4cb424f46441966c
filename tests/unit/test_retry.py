"""Tests for the shared retry helper."""

import pytest

from docsync.infrastructure.retry import RetryConfig, with_retry
from tests.support.pipeline_utils import RecordingSleep, run_async


class TransientError(Exception):
    pass


class ExhaustedError(Exception):
    pass


def _flaky(failures: int, error: Exception):
    calls = []

    async def operation():
        calls.append(1)
        if len(calls) <= failures:
            raise error
        return "done"

    return operation, calls


def test_delay_grows_exponentially_and_is_capped():
    config = RetryConfig(base_delay=1.0, exponential_base=2.0, max_delay=5.0)

    assert [config.delay_for(i) for i in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]


def test_transient_failures_are_retried():
    sleep = RecordingSleep()
    operation, calls = _flaky(2, TransientError("blip"))

    result = run_async(
        with_retry(operation, RetryConfig(max_retries=3), (TransientError,), ExhaustedError, sleep)
    )

    assert result == "done"
    assert len(calls) == 3
    assert sleep.calls == [1.0, 2.0]


def test_exhausted_retries_raise_configured_error():
    sleep = RecordingSleep()
    operation, calls = _flaky(10, TransientError("blip"))

    with pytest.raises(ExhaustedError, match="Failed after 3 attempts: blip"):
        run_async(
            with_retry(operation, RetryConfig(max_retries=2), (TransientError,), ExhaustedError, sleep)
        )
    assert len(calls) == 3


def test_other_errors_propagate_immediately():
    sleep = RecordingSleep()
    operation, calls = _flaky(1, KeyError("boom"))

    with pytest.raises(KeyError):
        run_async(
            with_retry(operation, RetryConfig(max_retries=3), (TransientError,), ExhaustedError, sleep)
        )
    assert len(calls) == 1
    assert sleep.calls == []
