"""Fixed-window rate limiter keyed by client identity.

Backed by the ``limits`` fixed-window strategy over in-memory storage.
Each client's window opens on its first hit and its count resets once
``window_seconds`` have passed.  Bursts of up to ``max_requests`` are
accepted on either side of a window boundary; this keeps lookup and memory
O(1) per client.  Expired counters are dropped by the storage itself.

Rejected requests still count.  The hit and the window snapshot are taken
under one lock so concurrent checks for the same client never both pass
when only one should.
"""

from __future__ import annotations

import math
import threading
import time

from limits import RateLimitItemPerSecond, strategies
from limits.storage import MemoryStorage

from chapter_scribe.domain.entities import Admission

DEFAULT_WINDOW_SECONDS = 15 * 60.0
DEFAULT_MAX_REQUESTS = 100


class FixedWindowRateLimiter:
    """Per-client admission control.

    Usage:
        limiter = FixedWindowRateLimiter(window_seconds=900, max_requests=100)

        admission = limiter.admit(client_ip)
        if not admission.allowed:
            ...  # reject, retry in admission.retry_after seconds

    Windows have whole-second granularity; fractional windows round up.
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        max_requests: int = DEFAULT_MAX_REQUESTS,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self._item = RateLimitItemPerSecond(max_requests, max(1, math.ceil(window_seconds)))
        self._strategy = strategies.FixedWindowRateLimiter(MemoryStorage())
        self._lock = threading.Lock()

    def admit(self, identity: str) -> Admission:
        """Count one request for *identity* and decide whether it may proceed."""
        with self._lock:
            allowed = self._strategy.hit(self._item, identity)
            stats = self._strategy.get_window_stats(self._item, identity)
        reset_after = max(0.0, stats.reset_time - time.time())
        return Admission(
            allowed=allowed,
            limit=self._item.amount,
            remaining=stats.remaining,
            retry_after=0.0 if allowed else reset_after,
            reset_after=reset_after,
        )
