"""
Per-domain request pacing with token-bucket semantics and optional jitter.

The page retriever shares one DomainThrottle across all crawl workers and takes
a token before every request attempt, so requests to the same host stay at
least `min_delay` seconds apart.
"""

from __future__ import annotations

import threading
import time
import random
from typing import Dict


class TokenBucket:
    def __init__(self, rate_per_sec: float = 1.0, burst: int = 1, jitter_ms: int = 0):
        """
        Args:
            rate_per_sec: average tokens per second (e.g., 1.0 = 1 token/1s)
            burst: bucket capacity
            jitter_ms: random jitter added after acquire to avoid lockstep
        """
        self.rate = rate_per_sec
        self.capacity = burst
        self.tokens = burst
        self.last = time.monotonic()
        self.lock = threading.Lock()
        self.jitter_ms = jitter_ms

    def acquire(self):
        while True:
            with self.lock:
                now = time.monotonic()
                elapsed = now - self.last
                # Refill
                self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
                self.last = now
                if self.tokens >= 1:
                    self.tokens -= 1
                    break
                needed = 1 - self.tokens
                wait = max(needed / self.rate, 0.01)
            time.sleep(wait)

        if self.jitter_ms > 0:
            time.sleep(random.uniform(0, self.jitter_ms) / 1000.0)


class DomainThrottle:
    """One TokenBucket per host, created on first use."""

    def __init__(self, min_delay: float = 1.0, jitter_ms: int = 0):
        self.min_delay = min_delay
        self.jitter_ms = jitter_ms
        self._buckets: Dict[str, TokenBucket] = {}
        self._lock = threading.Lock()

    def acquire(self, domain: str) -> None:
        if self.min_delay <= 0:
            return
        with self._lock:
            bucket = self._buckets.get(domain)
            if bucket is None:
                bucket = TokenBucket(rate_per_sec=1.0 / self.min_delay, burst=1, jitter_ms=self.jitter_ms)
                self._buckets[domain] = bucket
        bucket.acquire()
