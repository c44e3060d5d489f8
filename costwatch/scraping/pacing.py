"""
Request pacing: human-like jitter between requests and retry backoff.
"""

from __future__ import annotations

import random

from costwatch.scraping.cancellation import CancelToken

DEFAULT_RETRY_BASE_DELAY_SECONDS = 1.5
DEFAULT_MIN_JITTER_SECONDS = 0.25


def backoff_delay(
    attempt: int,
    base_seconds: float = DEFAULT_RETRY_BASE_DELAY_SECONDS,
    rng: random.Random | None = None,
) -> float:
    """
    Delay before retry number `attempt` (0-based):
    base * 2**attempt + uniform(0, base / 2).
    """

    if base_seconds <= 0:
        base_seconds = DEFAULT_RETRY_BASE_DELAY_SECONDS
    generator = rng or random
    exponential = base_seconds * (2 ** max(0, attempt))
    return exponential + generator.uniform(0.0, base_seconds / 2)


class RequestJitter:
    """
    Randomized pause before each outbound request.
    """

    def __init__(
        self,
        *,
        min_seconds: float = 0.0,
        max_seconds: float = 0.0,
        rng: random.Random | None = None,
    ) -> None:
        self._min = max(0.0, min_seconds)
        self._max = max(0.0, max_seconds)
        self._rng = rng or random.Random()

    def next_delay(self) -> float:
        low, high = self._min, self._max
        if low <= 0 and high <= 0:
            return 0.0
        if low <= 0:
            low = DEFAULT_MIN_JITTER_SECONDS
        if high <= 0 or high < low:
            high = low
        if high == low:
            return low
        return self._rng.uniform(low, high)

    def delay(self, cancel_token: CancelToken) -> None:
        cancel_token.sleep(self.next_delay())
