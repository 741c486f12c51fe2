"""
Unit Tests for Retry Logic
==========================

Tests for exponential backoff with jitter and the async retry manager.
"""

import asyncio
import random
from unittest.mock import AsyncMock, Mock

import pytest

from lufeed_parser.recovery.retry_logic import (
    RetryConfig,
    RetryManager,
    base_backoff,
    calculate_backoff,
)
from lufeed_parser.utils.exceptions import (
    FetchNetworkError,
    HTTPStatusError,
    is_transient_error,
)


class TestBackoff:
    """Test cases for backoff calculation."""

    @pytest.mark.parametrize("attempt,expected", [(1, 2.0), (2, 4.0), (3, 8.0), (5, 32.0)])
    def test_base_backoff_is_power_of_two(self, attempt, expected):
        assert base_backoff(attempt) == expected

    def test_max_delay_caps_base(self):
        assert base_backoff(10, RetryConfig(max_delay=30)) == 30

    @pytest.mark.parametrize("attempt", [1, 2, 3])
    def test_jitter_stays_within_half_of_base(self, attempt):
        rng = random.Random(3)
        base = 2 ** attempt
        for _ in range(50):
            delay = calculate_backoff(attempt, rng=rng)
            assert base <= delay <= base * 1.5


class TestRetryManager:
    """Test cases for RetryManager.retry_async."""

    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        sleep = AsyncMock()
        manager = RetryManager(sleep=sleep)
        func = AsyncMock(return_value="ok")

        assert await manager.retry_async(func, should_retry=is_transient_error) == "ok"
        assert func.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self):
        sleep = AsyncMock()
        manager = RetryManager(RetryConfig(max_attempts=3), sleep=sleep, rng=random.Random(0))
        func = AsyncMock(side_effect=[FetchNetworkError("EOF"), FetchNetworkError("EOF"), "ok"])

        assert await manager.retry_async(func, should_retry=is_transient_error) == "ok"
        assert func.await_count == 3
        assert sleep.await_count == 2

        first_delay = sleep.await_args_list[0].args[0]
        second_delay = sleep.await_args_list[1].args[0]
        assert 2 <= first_delay <= 3
        assert 4 <= second_delay <= 6

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        sleep = AsyncMock()
        manager = RetryManager(RetryConfig(max_attempts=3), sleep=sleep)
        func = AsyncMock(side_effect=FetchNetworkError("connection reset"))

        with pytest.raises(FetchNetworkError):
            await manager.retry_async(func, should_retry=is_transient_error)
        assert func.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_non_retryable_error_raises_immediately(self):
        sleep = AsyncMock()
        manager = RetryManager(sleep=sleep)
        func = AsyncMock(side_effect=HTTPStatusError("gone", status=404))

        with pytest.raises(HTTPStatusError):
            await manager.retry_async(func, should_retry=is_transient_error)
        assert func.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancellation_is_not_retried(self):
        manager = RetryManager(sleep=AsyncMock())
        func = AsyncMock(side_effect=asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await manager.retry_async(func, should_retry=lambda e: True)
        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_before_retry_hook_receives_error(self):
        hook = Mock()
        manager = RetryManager(RetryConfig(max_attempts=2), sleep=AsyncMock())
        error = FetchNetworkError("timeout")
        func = AsyncMock(side_effect=[error, "ok"])

        await manager.retry_async(func, should_retry=is_transient_error, before_retry=hook)
        hook.assert_called_once_with(error)
