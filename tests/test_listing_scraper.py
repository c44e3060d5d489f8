"""
tests/test_listing_scraper.py

Fetch loop behaviour of a declarative listing scraper against a fake
session: retries, block detection, cancellation, rate limiting and the
extraction cascade.
"""

from __future__ import annotations

import requests
import pytest

from costwatch.scraping.cancellation import CancelToken
from costwatch.scraping.errors import (
    BadStatusError,
    BlockedError,
    EmptyResultError,
    FetchError,
    ScrapeCancelledError,
)
from costwatch.scraping.metrics import InMemoryMetrics
from costwatch.scraping.scrapers import ListingScraper
from conftest import (
    BLOCK_PAGE,
    EMPTY_PAGE,
    FALLBACK_PAGE,
    LISTING_PAGE,
    FakeResponse,
    FakeSession,
    fast_config,
    listing_definition,
)


def _scraper(session: FakeSession, *, metrics: InMemoryMetrics | None = None, **config) -> ListingScraper:
    definition = listing_definition(fast_config(session, **config))
    return ListingScraper(definition=definition, metrics=metrics)


class TestSuccessfulScrape:
    def test_extracts_records_with_primary_confidence(self) -> None:
        session = FakeSession([FakeResponse(200, LISTING_PAGE)])
        metrics = InMemoryMetrics()

        records = _scraper(session, metrics=metrics).scrape()

        assert len(session.calls) == 1
        assert [record.item_name for record in records] == ["Marina Heights 1BR", "Creek Vista Studio"]
        first = records[0]
        assert first.price == 85_000.0
        assert first.confidence == 0.75
        assert first.category == "Housing"
        assert first.location.area == "Dubai Marina"
        assert first.source == "dubizzle"
        assert first.source_url == "https://dubai.example.com/property-for-rent/marina-heights-1"
        assert first.attributes["extraction_strategy"] == "listing-item"
        assert metrics.items("dubizzle") == 2

    def test_sends_browser_headers_and_bounded_timeout(self) -> None:
        session = FakeSession([FakeResponse(200, LISTING_PAGE)])

        _scraper(session, user_agent="costwatch-test/1.0").scrape(CancelToken(timeout_seconds=2.0))

        call = session.calls[0]
        assert call["headers"]["User-Agent"] == "costwatch-test/1.0"
        assert "Accept-Language" in call["headers"]
        assert 0 < call["timeout"] <= 2.0
        assert call["allow_redirects"] is True

    def test_fallback_records_carry_lower_confidence(self) -> None:
        session = FakeSession([FakeResponse(200, FALLBACK_PAGE)])

        records = _scraper(session).scrape()

        assert len(records) == 1
        assert records[0].confidence == 0.5
        assert records[0].confidence < 0.75
        assert records[0].attributes["extraction_strategy"] == "generic_link_fallback"


class TestRetries:
    def test_exhaustion_raises_last_error_after_max_attempts(self) -> None:
        session = FakeSession([FakeResponse(500, "server error")])
        metrics = InMemoryMetrics()

        with pytest.raises(BadStatusError) as exc_info:
            _scraper(session, metrics=metrics).scrape()

        assert len(session.calls) == 3
        assert exc_info.value.status_code == 500
        assert exc_info.value.attempts == 3
        assert metrics.errors("dubizzle", "status") == 3

    def test_recovers_after_transient_failure(self) -> None:
        session = FakeSession(
            [
                FakeResponse(503, "unavailable"),
                requests.ConnectionError("connection reset"),
                FakeResponse(200, LISTING_PAGE),
            ]
        )

        records = _scraper(session).scrape()

        assert len(session.calls) == 3
        assert len(records) == 2

    def test_transport_errors_become_fetch_errors(self) -> None:
        session = FakeSession([requests.Timeout("read timed out")])

        with pytest.raises(FetchError):
            _scraper(session, max_retries=2).scrape()
        assert len(session.calls) == 2

    def test_empty_page_is_retried_then_reported(self) -> None:
        session = FakeSession([FakeResponse(200, EMPTY_PAGE)])

        with pytest.raises(EmptyResultError):
            _scraper(session).scrape()
        assert len(session.calls) == 3


class TestBlockDetection:
    def test_block_marker_on_200_is_blocked(self) -> None:
        session = FakeSession([FakeResponse(200, BLOCK_PAGE)])

        with pytest.raises(BlockedError) as exc_info:
            _scraper(session).scrape()

        assert exc_info.value.reason == "verify you are a human"
        assert exc_info.value.status_code == 200

    @pytest.mark.parametrize("status", [403, 429])
    def test_blocking_status_is_blocked_regardless_of_body(self, status: int) -> None:
        session = FakeSession([FakeResponse(status, LISTING_PAGE)])

        with pytest.raises(BlockedError) as exc_info:
            _scraper(session, max_retries=1).scrape()

        assert exc_info.value.status_code == status


class TestCancellationAndPacing:
    def test_cancelled_token_issues_no_request(self) -> None:
        session = FakeSession([FakeResponse(200, LISTING_PAGE)])
        token = CancelToken()
        token.cancel()

        with pytest.raises(ScrapeCancelledError):
            _scraper(session).scrape(token)

        assert session.calls == []

    def test_cancellation_is_not_retried(self) -> None:
        session = FakeSession([FakeResponse(500, "server error")])
        token = CancelToken(timeout_seconds=0.2)

        with pytest.raises(ScrapeCancelledError):
            _scraper(session, retry_base_delay_seconds=5.0).scrape(token)

        assert len(session.calls) == 1

    def test_rate_limit_spaces_back_to_back_scrapes(self) -> None:
        session = FakeSession([FakeResponse(200, LISTING_PAGE)])
        scraper = _scraper(session, rate_limit=1.0)

        scraper.scrape()
        scraper.scrape()

        assert len(session.call_times) == 2
        assert session.call_times[1] - session.call_times[0] >= 0.9

    def test_can_scrape_reflects_rate_limiter(self) -> None:
        session = FakeSession([FakeResponse(200, LISTING_PAGE)])
        scraper = _scraper(session, rate_limit=0.5)

        assert scraper.can_scrape() is True
        scraper.scrape()
        assert scraper.can_scrape() is False
