"""
Cooperative cancellation for blocking scrape runs.
"""

from __future__ import annotations

import threading
import time

from costwatch.scraping.errors import ScrapeCancelledError


class CancelToken:
    """
    Cancellation signal with an optional deadline, shared by every
    suspension point of one run (rate wait, jitter, backoff, HTTP).
    """

    def __init__(self, *, timeout_seconds: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline: float | None = None
        if timeout_seconds is not None:
            self._deadline = time.monotonic() + max(0.0, timeout_seconds)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._event.set()
            return True
        return False

    def remaining(self) -> float | None:
        """
        Seconds left before the deadline, or None when no deadline is set.
        """

        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise ScrapeCancelledError(self._reason())

    def sleep(self, seconds: float) -> None:
        """
        Sleep for `seconds` unless cancelled first, in which case raise
        ScrapeCancelledError.
        """

        self.raise_if_cancelled()
        if seconds <= 0:
            return

        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            if self._event.wait(remaining):
                raise ScrapeCancelledError(self._reason())
            self._event.set()
            raise ScrapeCancelledError("deadline exceeded")

        if self._event.wait(seconds):
            raise ScrapeCancelledError(self._reason())

    def bound_timeout(self, timeout_seconds: float) -> float:
        """
        Clamp an I/O timeout so it never outlives the deadline.
        """

        remaining = self.remaining()
        if remaining is None:
            return timeout_seconds
        return max(0.001, min(timeout_seconds, remaining))

    def _reason(self) -> str:
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return "deadline exceeded"
        return "run cancelled"
