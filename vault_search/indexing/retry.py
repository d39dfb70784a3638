"""Async retry with capped exponential backoff."""

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from vault_search.config import IndexingSettings, SearchSettings
from vault_search.exceptions import ProviderUnavailable, VaultSearchError
from vault_search.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry behaviour for transient failures.

    Attributes:
        max_attempts: Maximum number of attempts (including first try).
        initial_backoff: Delay before the first retry, in seconds.
        max_backoff: Cap on any single delay, in seconds.
        multiplier: Growth factor between consecutive delays.
        jitter: Randomize each delay by +/-25%.
        timeout: Deadline for a single attempt, None for no deadline.
    """

    max_attempts: int = 3
    initial_backoff: float = 0.1
    max_backoff: float = 1.0
    multiplier: float = 2.0
    jitter: bool = True
    timeout: float | None = None

    @classmethod
    def for_indexing(cls, settings: IndexingSettings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.max_attempts,
            initial_backoff=settings.initial_backoff,
            max_backoff=settings.max_backoff,
            timeout=settings.batch_timeout,
        )

    @classmethod
    def for_search(cls, settings: SearchSettings) -> "RetryPolicy":
        return cls(max_attempts=settings.max_attempts, timeout=settings.query_timeout)

    def delay(self, attempt: int) -> float:
        """Seconds to wait after the given 0-based attempt failed."""
        delay = min(self.initial_backoff * (self.multiplier**attempt), self.max_backoff)
        if self.jitter:
            delay *= 0.75 + random.random() * 0.5
        return delay


def is_retryable(error: BaseException) -> bool:
    return isinstance(error, VaultSearchError) and error.retryable


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    operation_name: str = "operation",
    on_retry: Callable[[int, Exception], None] | None = None,
) -> T:
    """Run ``operation`` until it succeeds or the policy gives up.

    Each attempt runs under ``policy.timeout``; an attempt that overruns is
    cancelled and counts as a ``ProviderUnavailable`` failure. Only errors
    flagged ``retryable`` are retried.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt.
        policy: Attempt budget, backoff and per-attempt deadline.
        operation_name: Name for logging.
        on_retry: Called with the failed attempt number and error before
            each backoff sleep.

    Returns:
        The operation's result.

    Raises:
        VaultSearchError: Non-retryable errors immediately, the last
            retryable error once attempts are exhausted.
    """
    for attempt in range(policy.max_attempts):
        try:
            async with asyncio.timeout(policy.timeout):
                return await operation()
        except TimeoutError as e:
            error: Exception = ProviderUnavailable(
                f"{operation_name} timed out after {policy.timeout}s",
                details={"timeout": policy.timeout, "attempt": attempt + 1},
            )
            error.__cause__ = e
        except VaultSearchError as e:
            if not e.retryable:
                raise
            error = e

        logger.warning(
            f"{operation_name} failed on attempt {attempt + 1}/{policy.max_attempts}: "
            f"{error}",
            extra={"operation": operation_name, "attempt": attempt + 1},
        )
        if attempt == policy.max_attempts - 1:
            raise error

        if on_retry is not None:
            on_retry(attempt + 1, error)
        await asyncio.sleep(policy.delay(attempt))

    # max_attempts >= 1, so the loop always returns or raises
    raise AssertionError("unreachable")
