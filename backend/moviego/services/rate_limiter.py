"""
MovieGo API: Per-Client Rate Limiter Registry
=============================================

What:  A token bucket per client address, created on first sight and evicted
       after a period of inactivity.
How:   Each bucket holds up to `burst` tokens and refills continuously at
       `rate` tokens per second. A request costs one token; an empty bucket
       means 429. A background sweeper drops buckets idle longer than
       `idle_ttl`, so memory stays bounded by the number of recently active
       clients.

Concurrency:
    One registry-scoped `threading.Lock` serializes `allow()` and `sweep()`.
    It is held only for the dictionary lookup/insert and the arithmetic,
    never across an await, so event-loop code can call `allow()` directly.

Example:
    registry = RateLimiterRegistry(rate=2, burst=4)
    registry.allow("203.0.113.7")   → True (bucket created full, 3 left)
"""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class TokenBucket:
    """A single client's bucket. Not thread-safe on its own; the registry locks."""

    rate: float
    burst: float
    tokens: float
    updated: float

    def consume(self, now: float, cost: float = 1.0) -> bool:
        elapsed = max(0.0, now - self.updated)
        self.tokens = min(self.burst, self.tokens + elapsed * self.rate)
        self.updated = now
        if self.tokens >= cost:
            self.tokens -= cost
            return True
        return False


@dataclass
class _Entry:
    bucket: TokenBucket
    last_seen: float


class RateLimiterRegistry:
    """
    Registry of token buckets keyed by client address.

    Attributes:
        rate:       Tokens added per second
        burst:      Bucket capacity (and the size of the first burst)
        idle_ttl:   Seconds without a request after which an entry is evicted
        clock:      Monotonic time source in seconds (injectable for tests)
    """

    def __init__(
        self,
        rate: float,
        burst: int,
        idle_ttl: float = 180.0,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.rate = float(rate)
        self.burst = float(burst)
        self.idle_ttl = float(idle_ttl)
        self._clock = clock or time.monotonic
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def allow(self, address: str) -> bool:
        """Take one token from `address`'s bucket. Never blocks on I/O."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(address)
            if entry is None:
                entry = _Entry(
                    bucket=TokenBucket(rate=self.rate, burst=self.burst, tokens=self.burst, updated=now),
                    last_seen=now,
                )
                self._entries[address] = entry
            entry.last_seen = now
            return entry.bucket.consume(now)

    def sweep(self) -> int:
        """Evict entries idle longer than `idle_ttl`. Returns how many were removed."""
        cutoff = self._clock() - self.idle_ttl
        with self._lock:
            stale = [addr for addr, entry in self._entries.items() if entry.last_seen < cutoff]
            for addr in stale:
                del self._entries[addr]
        if stale:
            logger.debug("Rate limiter swept %d idle client entries", len(stale))
        return len(stale)

    # ── Sweeper lifecycle ─────────────────────────────────────────────────

    def start_sweeper(self, interval: float) -> asyncio.Task:
        """Start the periodic sweep on the running event loop (idempotent)."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_forever(interval), name="rate-limiter-sweeper")
        return self._sweeper

    async def stop_sweeper(self) -> None:
        task, self._sweeper = self._sweeper, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _sweep_forever(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.sweep()
