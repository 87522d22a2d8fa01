"""Minimum-delay rate limiting for outgoing feed requests."""

from __future__ import annotations

import asyncio
import logging
import time

logger = logging.getLogger(__name__)


class RateLimiter:
    """Keeps a minimum delay between consecutive requests to one feed.

    Several route polls share one fetcher, so their requests are spaced out
    through a single limiter instead of hitting the feed in bursts.
    """

    def __init__(self, feed_name: str, min_delay_seconds: float = 0.0) -> None:
        """Initialize the rate limiter.

        Args:
            feed_name: Name of the feed (for logging).
            min_delay_seconds: Minimum delay between requests in seconds.
        """
        self.feed_name = feed_name
        self.min_delay_seconds = min_delay_seconds
        self._last_request_time: float | None = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until the next request may be sent."""
        async with self._lock:
            now = time.monotonic()
            if self._last_request_time is not None:
                wait_time = self.min_delay_seconds - (now - self._last_request_time)
                if wait_time > 0:
                    logger.debug(f"{self.feed_name}: waiting {wait_time:.2f}s before next request")
                    await asyncio.sleep(wait_time)
            self._last_request_time = time.monotonic()

    async def __aenter__(self) -> RateLimiter:
        await self.acquire()
        return self

    async def __aexit__(
        self, _exc_type: type | None, _exc_val: Exception | None, _exc_tb: object
    ) -> None:
        pass
