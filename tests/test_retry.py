"""
Tests for async retry logic.
"""

import asyncio

import pytest
from jobsync.retry import exponential_backoff, RetryError


class TestExponentialBackoff:
    """Test exponential backoff decorator."""

    def test_success_on_first_try(self):
        """Function that succeeds immediately should not retry."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.1)
        async def succeeds():
            call_count[0] += 1
            return "success"

        assert asyncio.run(succeeds()) == "success"
        assert call_count[0] == 1

    def test_retry_then_succeed(self):
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01)
        async def fails_twice():
            call_count[0] += 1
            if call_count[0] < 3:
                raise ConnectionError("Temporary failure")
            return "success"

        assert asyncio.run(fails_twice()) == "success"
        assert call_count[0] == 3

    def test_all_retries_exhausted(self):
        call_count = [0]

        @exponential_backoff(max_retries=2, base_delay=0.01)
        async def always_fails():
            call_count[0] += 1
            raise ValueError("Always fails")

        with pytest.raises(RetryError) as exc:
            asyncio.run(always_fails())

        assert call_count[0] == 3  # Initial + 2 retries
        assert isinstance(exc.value.__cause__, ValueError)

    def test_zero_retries(self):
        call_count = [0]

        @exponential_backoff(max_retries=0)
        async def always_fails():
            call_count[0] += 1
            raise ConnectionError("down")

        with pytest.raises(RetryError):
            asyncio.run(always_fails())
        assert call_count[0] == 1

    def test_only_catches_specified_exceptions(self):
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01, exceptions=(ConnectionError,))
        async def raises_value_error():
            call_count[0] += 1
            raise ValueError("Not retryable")

        with pytest.raises(ValueError):
            asyncio.run(raises_value_error())

        assert call_count[0] == 1

    def test_exponential_delay(self):
        delays = []

        def on_retry_callback(attempt, exception, delay):
            delays.append(delay)

        @exponential_backoff(
            max_retries=3,
            base_delay=0.01,
            exponential_base=2.0,
            on_retry=on_retry_callback
        )
        async def always_fails():
            raise ConnectionError("Test")

        with pytest.raises(RetryError):
            asyncio.run(always_fails())

        assert delays == [0.01, 0.02, 0.04]

    def test_max_delay_cap(self):
        delays = []

        def on_retry_callback(attempt, exception, delay):
            delays.append(delay)

        @exponential_backoff(
            max_retries=5,
            base_delay=0.001,
            max_delay=0.002,
            exponential_base=3.0,
            on_retry=on_retry_callback
        )
        async def always_fails():
            raise ConnectionError("Test")

        with pytest.raises(RetryError):
            asyncio.run(always_fails())

        assert len(delays) == 5
        assert all(d <= 0.002 for d in delays)
