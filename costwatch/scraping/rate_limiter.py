"""
Per-source request rate limiter.
"""

from __future__ import annotations

import threading
import time

from costwatch.scraping.cancellation import CancelToken


class TokenBucketRateLimiter:
    """
    Token bucket of capacity 1 refilling at `rate_per_second` tokens/sec.

    The bucket starts full, so the first request of a fresh source is never
    delayed.
    """

    def __init__(self, *, rate_per_second: float, capacity: float = 1.0) -> None:
        if rate_per_second <= 0:
            raise ValueError("rate_per_second must be positive.")
        self._rate = rate_per_second
        self._capacity = max(1.0, capacity)
        self._tokens = self._capacity
        self._updated_at = time.monotonic()
        self._lock = threading.Lock()

    @property
    def rate_per_second(self) -> float:
        return self._rate

    def allow(self) -> bool:
        """
        Return whether a request could be issued right now without waiting.

        Does not consume a token.
        """

        with self._lock:
            self._refill(time.monotonic())
            return self._tokens >= 1.0

    def wait(self, cancel_token: CancelToken) -> None:
        """
        Block until a token is available and take it.

        Raises ScrapeCancelledError if the run is cancelled first.
        """

        cancel_token.raise_if_cancelled()
        while True:
            with self._lock:
                self._refill(time.monotonic())
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return
                wait_seconds = (1.0 - self._tokens) / self._rate
            cancel_token.sleep(wait_seconds)

    def _refill(self, now: float) -> None:
        elapsed = now - self._updated_at
        if elapsed > 0:
            self._tokens = min(self._capacity, self._tokens + elapsed * self._rate)
        self._updated_at = now
