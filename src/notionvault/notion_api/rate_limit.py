"""Client-side request pacing.

Notion allows an average of three requests per second per integration.
:class:`AsyncTokenBucket` refills at ``rate_rps`` tokens per second up to
a *burst* ceiling; a request that finds the bucket empty awaits the
deficit instead of provoking a 429.

The exporter runs on a single task, so the bucket is never contended;
the lock only guards against callers that share one transport between
tasks.
"""

from __future__ import annotations

import asyncio
import time


class AsyncTokenBucket:
    """Token bucket for asynchronous request pacing.

    Parameters
    ----------
    rate_rps:
        Sustained refill rate in tokens per second.
    burst:
        Maximum number of tokens the bucket can hold.
    """

    __slots__ = ("_lock", "burst", "last_refill", "rate", "tokens")

    def __init__(self, rate_rps: float, burst: int = 3) -> None:
        if rate_rps <= 0:
            raise ValueError(f"rate_rps must be > 0, got {rate_rps}")
        if burst < 1:
            raise ValueError(f"burst must be >= 1, got {burst}")

        self.rate: float = rate_rps
        self.burst: int = burst
        self.tokens: float = float(burst)
        self.last_refill: float = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        self.tokens = min(self.burst, self.tokens + (now - self.last_refill) * self.rate)
        self.last_refill = now

    async def acquire(self) -> float:
        """Take one token, awaiting if the bucket is empty.

        Returns the number of seconds spent waiting (``0.0`` when a token
        was immediately available).
        """
        async with self._lock:
            self._refill()
            if self.tokens >= 1:
                self.tokens -= 1
                return 0.0

            wait = (1 - self.tokens) / self.rate
            await asyncio.sleep(wait)
            self._refill()
            self.tokens = max(0.0, self.tokens - 1)
            return wait
