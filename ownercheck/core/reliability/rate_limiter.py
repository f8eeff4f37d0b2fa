"""
Rate limiter — client-side throttling of API calls.

Token bucket:
    capacity = burst, refilled at qps tokens per second.
    acquire() blocks until a token is available.
    A negative qps (-1) disables throttling. Zero is rejected.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass
class TokenBucket:
    """Thread-safe token bucket.

    Args:
        qps: Refill rate in tokens per second. Negative disables
            throttling.
        burst: Bucket capacity.
    """

    qps: float = 25.0
    burst: int = 100

    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], None] = time.sleep

    # ── Internal state ───────────────────────────────────────────
    tokens: float = field(init=False)
    last_refill: float = field(init=False)
    total_waits: int = field(default=0, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.qps == 0:
            raise ValueError("qps must be positive, or -1 to disable throttling")
        self.tokens = float(self.burst)
        self.last_refill = self.clock()

    @property
    def unlimited(self) -> bool:
        return self.qps < 0

    def _refill(self) -> None:
        now = self.clock()
        elapsed = max(0.0, now - self.last_refill)
        self.tokens = min(float(self.burst), self.tokens + elapsed * self.qps)
        self.last_refill = now

    def acquire(self) -> None:
        """Take a token, sleeping until one is available."""
        if self.unlimited:
            return
        while True:
            with self._lock:
                self._refill()
                if self.tokens >= 1.0:
                    self.tokens -= 1.0
                    return
                wait = (1.0 - self.tokens) / self.qps
                self.total_waits += 1
            logger.debug("Rate limited, waiting %.3fs", wait)
            self.sleep(wait)
