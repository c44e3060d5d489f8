"""
Base scraper abstraction: the rate-limited, jittered, retried
fetch -> detect-block -> extract loop shared by every source.
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod

import requests
from bs4 import BeautifulSoup

from costwatch.domain.cost_data_point import CostDataPoint
from costwatch.scraping.anti_bot import AntiBotDetector
from costwatch.scraping.cancellation import CancelToken
from costwatch.scraping.config.models import ScraperConfig
from costwatch.scraping.errors import (
    BadStatusError,
    BlockedError,
    EmptyResultError,
    FetchError,
    ParseError,
    RetryableScrapeError,
    ScrapeCancelledError,
    ScrapeError,
)
from costwatch.scraping.http import build_session, request_headers
from costwatch.scraping.logging_utils import error_fields, log_event
from costwatch.scraping.metrics import MetricsSink, NullMetrics
from costwatch.scraping.pacing import RequestJitter, backoff_delay
from costwatch.scraping.rate_limiter import TokenBucketRateLimiter

logger = logging.getLogger(__name__)


class ScraperBase(ABC):
    """
    A named source of cost data points.

    Subclasses supply the target URL and the extraction step; this class owns
    pacing, transport, block detection and the retry decision.
    """

    def __init__(
        self,
        *,
        config: ScraperConfig,
        session: requests.Session | None = None,
        rate_limiter: TokenBucketRateLimiter | None = None,
        jitter: RequestJitter | None = None,
        detector: AntiBotDetector | None = None,
        metrics: MetricsSink | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.session = session or build_session(config)
        self.rate_limiter = rate_limiter or TokenBucketRateLimiter(
            rate_per_second=config.effective_rate_limit()
        )
        self._rng = rng or random.Random()
        self.jitter = jitter or RequestJitter(
            min_seconds=config.min_delay_seconds,
            max_seconds=config.max_delay_seconds,
            rng=self._rng,
        )
        self.detector = detector or AntiBotDetector()
        self.metrics = metrics or NullMetrics()

    @property
    @abstractmethod
    def name(self) -> str:
        """Scraper identifier, unique within a scraper service."""

    @abstractmethod
    def target_url(self) -> str:
        """URL of the page to fetch."""

    @abstractmethod
    def extract(self, *, soup: BeautifulSoup, page_url: str) -> list[CostDataPoint]:
        """
        Extract records from a fetched, unblocked page. Return an empty list
        when the page has nothing usable.
        """

    def can_scrape(self) -> bool:
        """
        Pre-flight admission: True when the rate limiter would let a request
        through right now.
        """

        return self.rate_limiter.allow()

    def scrape(self, cancel_token: CancelToken | None = None) -> list[CostDataPoint]:
        """
        Fetch and extract the target page, retrying transient failures.
        """

        token = cancel_token or CancelToken()
        url = self.target_url()
        log_event(logger, logging.INFO, "scrape_started", scraper=self.name, url=url)

        records = self._fetch_with_retry(url, token)

        self.metrics.record_items(self.name, len(records))
        log_event(
            logger,
            logging.INFO,
            "scrape_completed",
            scraper=self.name,
            url=url,
            count=len(records),
        )
        return records

    def _fetch_with_retry(self, url: str, token: CancelToken) -> list[CostDataPoint]:
        max_attempts = self.config.effective_max_retries()
        last_error: RetryableScrapeError | None = None

        for attempt in range(max_attempts):
            if attempt > 0:
                delay = backoff_delay(
                    attempt - 1,
                    self.config.effective_retry_base_delay(),
                    rng=self._rng,
                )
                log_event(
                    logger,
                    logging.INFO,
                    "fetch_retry",
                    scraper=self.name,
                    attempt=attempt + 1,
                    delay_seconds=round(delay, 3),
                )
                token.sleep(delay)

            try:
                return self._attempt(url, token)
            except RetryableScrapeError as exc:
                exc.attempts = attempt + 1
                last_error = exc
                self.metrics.record_error(self.name, exc.kind)
                log_event(
                    logger,
                    logging.WARNING,
                    "fetch_attempt_failed",
                    scraper=self.name,
                    attempt=attempt + 1,
                    max_attempts=max_attempts,
                    **error_fields(exc),
                )

        if last_error is not None:
            raise last_error
        raise ScrapeError(f"failed after {max_attempts} attempts")

    def _attempt(self, url: str, token: CancelToken) -> list[CostDataPoint]:
        self.rate_limiter.wait(token)
        self.jitter.delay(token)

        response = self._fetch(url, token)
        status_code = response.status_code
        if self.detector.is_blocking_status(status_code):
            raise BlockedError(
                f"blocked by anti-bot (status {status_code})",
                status_code=status_code,
            )
        if status_code != 200:
            raise BadStatusError(f"bad status: {status_code}", status_code=status_code)

        soup = self._parse(response)
        reason = self.detector.block_reason(soup.get_text(" ", strip=True))
        if reason is not None:
            raise BlockedError(
                f"received block page (marker '{reason}')",
                status_code=status_code,
                reason=reason,
            )

        records = self.extract(soup=soup, page_url=url)
        if not records:
            raise EmptyResultError("no listings found")
        return records

    def _fetch(self, url: str, token: CancelToken) -> requests.Response:
        token.raise_if_cancelled()
        try:
            return self.session.get(
                url,
                headers=request_headers(self.config, self._rng),
                timeout=token.bound_timeout(self.config.effective_timeout()),
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            if token.cancelled:
                raise ScrapeCancelledError(f"cancelled during fetch: {exc}") from exc
            raise FetchError(f"fetch page: {exc}") from exc

    @staticmethod
    def _parse(response: requests.Response) -> BeautifulSoup:
        try:
            text = response.text
        except (UnicodeDecodeError, LookupError) as exc:
            raise ParseError(f"decode body: {exc}") from exc
        if not text or not text.strip():
            raise ParseError("empty document")
        try:
            return BeautifulSoup(text, "html.parser")
        except Exception as exc:  # noqa: BLE001
            raise ParseError(f"parse html: {exc}") from exc
