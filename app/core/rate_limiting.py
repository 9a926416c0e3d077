"""Per-client rate limiting.

Fixed-window counters keyed by client IP. State is process-local: each
app instance owns its own limiters, and the identity table is a bounded
LRU so a flood of distinct addresses cannot grow it without limit.
"""
import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

from cachetools import LRUCache
from fastapi import Request
from slowapi.util import get_remote_address

from app.core.errors import RateLimitExceeded

# Requests per window, by endpoint group
RATE_LIMITS = {
    "general": 100,  # data endpoints
    "ai": 20,        # AI-forwarding endpoints cost money per call
}


@dataclass
class RateLimitWindow:
    """Request count for one client in the current window."""
    identity: str
    count: int
    reset_at: float


@dataclass
class RateLimitDecision:
    allowed: bool
    retry_after_seconds: int = 0
    remaining: int = 0

    def __bool__(self) -> bool:
        return self.allowed


class RateLimiter:
    """Fixed-window rate limiter.

    Args:
        max_requests: Requests allowed per identity per window.
        window_seconds: Window length.
        max_identities: Identities tracked before the least recently seen
            one is evicted.
        clock: Monotonic time source in seconds.
    """

    def __init__(
        self,
        max_requests: int = RATE_LIMITS["general"],
        window_seconds: float = 60,
        max_identities: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: LRUCache = LRUCache(maxsize=max_identities)

    def allow(self, identity: str) -> RateLimitDecision:
        """Count a request from ``identity`` and decide whether it may proceed."""
        now = self._clock()
        window = self._windows.get(identity)

        if window is None or now > window.reset_at:
            self._windows[identity] = RateLimitWindow(
                identity=identity,
                count=1,
                reset_at=now + self.window_seconds,
            )
            return RateLimitDecision(True, remaining=self.max_requests - 1)

        if window.count < self.max_requests:
            window.count += 1
            return RateLimitDecision(True, remaining=self.max_requests - window.count)

        retry_after = math.ceil(window.reset_at - now)
        retry_after = max(1, min(retry_after, math.ceil(self.window_seconds)))
        return RateLimitDecision(False, retry_after_seconds=retry_after)

    def check(self, identity: str) -> None:
        """Like ``allow`` but raises RateLimitExceeded on denial."""
        decision = self.allow(identity)
        if not decision:
            raise RateLimitExceeded(identity, decision.retry_after_seconds)

    def window(self, identity: str) -> Optional[RateLimitWindow]:
        return self._windows.get(identity)

    def __len__(self) -> int:
        return len(self._windows)


def client_identity(request: Request) -> str:
    """Identify a client by its network address."""
    return get_remote_address(request) or "unknown"
