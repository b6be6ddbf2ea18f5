"""Sliding-window request limiter used by the quote backend."""
import time
from collections import deque
from typing import Callable, Deque

from loanquote.config import RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS


class RateLimiter:
    """Counts requests over a trailing time window.

    Each limiter owns its own request log; whoever constructs the backend
    decides how long that log lives.

    Attributes:
        max_requests: Requests allowed per window.
        window_seconds: Length of the trailing window.
    """

    def __init__(self, max_requests: int = RATE_LIMIT_MAX_REQUESTS,
                 window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: Deque[float] = deque()

    def _evict(self, now: float) -> None:
        cutoff = now - self.window_seconds
        while self._requests and self._requests[0] <= cutoff:
            self._requests.popleft()

    def try_acquire(self) -> bool:
        """Record a request if the quota allows it.

        Returns:
            True if the request is admitted, False if the caller is limited.
        """
        now = self._clock()
        self._evict(now)
        if len(self._requests) >= self.max_requests:
            return False
        self._requests.append(now)
        return True

    @property
    def remaining(self) -> int:
        self._evict(self._clock())
        return max(self.max_requests - len(self._requests), 0)

    def reset(self) -> None:
        self._requests.clear()
