"""
Rate limiting for chain calls.

A RateLimiter is a fixed-interval gate: consecutive acquire() calls are
spaced at least 1/requests_per_second seconds apart. One limiter is owned
by each deployment run and shared by every call of that run.
"""

import logging
import time
from typing import Callable, Optional

from .client import ChainClient

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-interval request gate.

    Args:
        requests_per_second: Ceiling on calls per second (e.g. 0.5 = one call per 2s)
        clock: Monotonic clock returning seconds
        sleep: Sleep function taking seconds
    """

    def __init__(
        self,
        requests_per_second: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        self._interval = 1.0 / requests_per_second
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None
        self._calls = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def calls(self) -> int:
        """Number of acquire() calls made so far."""
        return self._calls

    def acquire(self) -> None:
        """Block until the next call is allowed."""
        now = self._clock()
        if self._last is not None:
            ready_at = self._last + self._interval
            if ready_at > now:
                logger.debug(f"Rate limit: waiting {ready_at - now:.2f}s")
                self._sleep(ready_at - now)
                now = ready_at
        self._last = now
        self._calls += 1


class ThrottledChainClient:
    """ChainClient wrapper that passes every call through a RateLimiter."""

    def __init__(self, client: ChainClient, limiter: RateLimiter):
        self._client = client
        self._limiter = limiter

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    def get_balance(self, address: str) -> int:
        self._limiter.acquire()
        return self._client.get_balance(address)

    def is_contract_deployed(self, address: str) -> bool:
        self._limiter.acquire()
        return self._client.is_contract_deployed(address)

    def get_seqno(self, address: str) -> int:
        self._limiter.acquire()
        return self._client.get_seqno(address)

    def send_boc(self, boc: bytes) -> None:
        self._limiter.acquire()
        self._client.send_boc(boc)
