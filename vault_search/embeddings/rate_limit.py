"""Token bucket rate limiter shared by remote embedding requests."""

import asyncio
import time
from collections.abc import Awaitable, Callable

from vault_search.config import RateLimitSettings
from vault_search.logging_config import get_logger

logger = get_logger(__name__)


class TokenBucketRateLimiter:
    """Async token bucket.

    Tokens refill continuously at ``requests_per_minute / 60`` per second up
    to ``burst``. ``acquire`` suspends the caller until a token is free; it
    never fails. Waiters are served in arrival order.
    """

    def __init__(
        self,
        requests_per_minute: float,
        burst: int = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the limiter.

        Args:
            requests_per_minute: Sustained rate; zero or less disables limiting.
            burst: Bucket capacity.
            clock: Monotonic time source (injectable for tests).
            sleep: Async sleep (injectable for tests).
        """
        self._rate = requests_per_minute / 60.0
        self._capacity = float(max(burst, 1))
        self._tokens = self._capacity
        self._clock = clock
        self._sleep = sleep
        self._updated = clock()
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: RateLimitSettings) -> "TokenBucketRateLimiter":
        """Build a limiter from configuration."""
        return cls(settings.requests_per_minute, settings.burst)

    @property
    def enabled(self) -> bool:
        """Whether requests are limited at all."""
        return self._rate > 0

    @property
    def available(self) -> float:
        """Tokens available right now."""
        self._refill()
        return self._tokens

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(now - self._updated, 0.0)
        self._updated = now
        self._tokens = min(self._capacity, self._tokens + elapsed * self._rate)

    async def acquire(self) -> float:
        """Take one token, waiting for capacity if needed.

        Returns:
            Seconds spent waiting.
        """
        if not self.enabled:
            return 0.0

        waited = 0.0
        async with self._lock:
            while True:
                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    if waited:
                        logger.debug(f"Rate limiter delayed request by {waited:.3f}s")
                    return waited
                delay = (1.0 - self._tokens) / self._rate
                await self._sleep(delay)
                waited += delay
