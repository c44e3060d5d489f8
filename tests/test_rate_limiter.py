from __future__ import annotations

import time

import pytest

from costwatch.scraping.cancellation import CancelToken
from costwatch.scraping.errors import ScrapeCancelledError
from costwatch.scraping.rate_limiter import TokenBucketRateLimiter


def test_fresh_limiter_allows_without_consuming() -> None:
    limiter = TokenBucketRateLimiter(rate_per_second=1.0)

    assert limiter.allow() is True
    assert limiter.allow() is True


def test_wait_consumes_the_token() -> None:
    limiter = TokenBucketRateLimiter(rate_per_second=1.0)

    limiter.wait(CancelToken())

    assert limiter.allow() is False


def test_back_to_back_waits_are_spaced_by_the_rate() -> None:
    limiter = TokenBucketRateLimiter(rate_per_second=10.0)
    token = CancelToken()

    limiter.wait(token)
    started = time.monotonic()
    limiter.wait(token)

    assert time.monotonic() - started >= 0.08


def test_wait_raises_when_token_already_cancelled() -> None:
    limiter = TokenBucketRateLimiter(rate_per_second=1.0)
    token = CancelToken()
    token.cancel()

    with pytest.raises(ScrapeCancelledError):
        limiter.wait(token)
    assert limiter.allow() is True


def test_wait_gives_up_at_the_deadline() -> None:
    limiter = TokenBucketRateLimiter(rate_per_second=0.1)
    limiter.wait(CancelToken())

    started = time.monotonic()
    with pytest.raises(ScrapeCancelledError):
        limiter.wait(CancelToken(timeout_seconds=0.05))
    assert time.monotonic() - started < 1.0


@pytest.mark.parametrize("rate", [0.0, -1.0])
def test_rejects_non_positive_rate(rate: float) -> None:
    with pytest.raises(ValueError):
        TokenBucketRateLimiter(rate_per_second=rate)
