"""
Lufeed Parser Retry Logic
=========================

Exponential backoff with jitter shared by the page extractor, the feed
reader and the per-item retry loop.

For attempt ``n`` (1-based) the base delay is ``exponential_base ** n``
seconds; a uniform jitter of up to ``jitter_ratio`` of the base is added.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..utils.logging import get_logger_for_component


T = TypeVar('T')

SleepFunc = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3                  # Total attempts, including the first
    exponential_base: float = 2.0          # Base delay is exponential_base ** attempt
    jitter_ratio: float = 0.5              # Jitter upper bound as a fraction of the base
    max_delay: Optional[float] = None      # Optional cap on the base delay


def base_backoff(attempt: int, config: Optional[RetryConfig] = None) -> float:
    """Base delay in seconds after the given 1-based attempt, before jitter."""
    config = config or RetryConfig()
    delay = config.exponential_base ** attempt
    if config.max_delay is not None:
        delay = min(delay, config.max_delay)
    return float(delay)


def calculate_backoff(attempt: int,
                      config: Optional[RetryConfig] = None,
                      rng: Optional[random.Random] = None) -> float:
    """Backoff delay with jitter for the given 1-based attempt.

    Args:
        attempt: Number of the attempt that just failed (1-based)
        config: Retry configuration
        rng: Random source, mainly for deterministic tests

    Returns:
        Delay in seconds in ``[base, base * (1 + jitter_ratio))``
    """
    config = config or RetryConfig()
    rng = rng or random
    delay = base_backoff(attempt, config)
    return delay + rng.uniform(0, delay * config.jitter_ratio)


class RetryManager:
    """Retry an async operation while a predicate classifies its errors as retryable."""

    def __init__(self,
                 config: Optional[RetryConfig] = None,
                 sleep: Optional[SleepFunc] = None,
                 rng: Optional[random.Random] = None):
        self.config = config or RetryConfig()
        self.sleep = sleep or asyncio.sleep
        self.rng = rng
        self.logger = get_logger_for_component('retry_manager')

    async def retry_async(self,
                          func: Callable[[], Awaitable[T]],
                          should_retry: Callable[[BaseException], bool],
                          operation: str = "operation",
                          before_retry: Optional[Callable[[BaseException], Any]] = None) -> T:
        """
        Retry an async callable.

        Args:
            func: Zero-argument coroutine function to run
            should_retry: Predicate deciding whether an error is retryable
            operation: Name used in log messages
            before_retry: Hook invoked with the error before sleeping

        Returns:
            Result of the first successful call

        Raises:
            The last error once attempts are exhausted, or the first
            non-retryable error.
        """
        max_attempts = max(1, self.config.max_attempts)

        for attempt in range(1, max_attempts + 1):
            try:
                result = await func()
                if attempt > 1:
                    self.logger.info(f"Retry successful for {operation} on attempt {attempt}")
                return result

            except asyncio.CancelledError:
                raise

            except Exception as e:
                if not should_retry(e):
                    self.logger.debug(f"Not retrying {operation}: {e}")
                    raise

                if attempt >= max_attempts:
                    self.logger.warning(f"All {max_attempts} attempts failed for {operation}: {e}")
                    raise

                if before_retry is not None:
                    before_retry(e)

                delay = calculate_backoff(attempt, self.config, self.rng)
                self.logger.warning(
                    f"Attempt {attempt} failed for {operation}: {e}. "
                    f"Retrying in {delay:.2f}s (attempt {attempt + 1}/{max_attempts})"
                )
                await self.sleep(delay)

        # Unreachable: the loop either returns or raises
        raise RuntimeError(f"Retry loop for {operation} exited without a result")
