"""
Failure taxonomy for the acquisition pipeline.

Every error carries a short `kind` used as the error label in metrics and
structured logs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from costwatch.domain.cost_data_point import CostDataPoint
    from costwatch.domain.scrape_run import ValidationSummary


class ScrapeError(Exception):
    """Base exception for scraper and orchestration failures."""

    kind = "scrape"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind)
        self.attempts = 0


class RetryableScrapeError(ScrapeError):
    """Raised by one fetch attempt when the attempt may be retried."""


class RateLimitedError(ScrapeError):
    """Raised pre-flight when the source has no request budget left."""

    kind = "rate_limited"


class ScrapeCancelledError(ScrapeError):
    """Raised by any suspension point once the run is cancelled or timed out."""

    kind = "cancelled"


class ScraperNotFoundError(ScrapeError):
    """Raised when no registered scraper has the requested name."""

    kind = "not_found"


class FetchError(RetryableScrapeError):
    """Raised on transport-level failures (DNS, connect, read timeout)."""

    kind = "fetch"


class BlockedError(RetryableScrapeError):
    """Raised when the site actively refuses us (403/429 or a challenge page)."""

    kind = "blocked"

    def __init__(
        self,
        message: str = "",
        *,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class BadStatusError(RetryableScrapeError):
    """Raised for any other non-200 response."""

    kind = "status"

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ParseError(RetryableScrapeError):
    """Raised when the fetched document cannot be parsed."""

    kind = "parse"


class EmptyResultError(RetryableScrapeError):
    """Raised when a well-formed page yields no extractable records."""

    kind = "empty"


class ValidationFailedError(ScrapeError):
    """Raised when the validator fails and the gate is configured to fail hard."""

    kind = "validation"

    def __init__(self, message: str = "", *, summary: ValidationSummary | None = None) -> None:
        super().__init__(message)
        self.summary = summary


class SaveError(ScrapeError):
    """Recorded when one accepted record could not be persisted."""

    kind = "save_failed"

    def __init__(self, message: str = "", *, record: CostDataPoint | None = None) -> None:
        super().__init__(message)
        self.record = record


class ScraperRunError(ScrapeError):
    """
    Names the scraper whose run failed; the terminal error is chained as
    `__cause__`.
    """

    kind = "run_failed"

    def __init__(self, scraper_name: str, error: BaseException) -> None:
        super().__init__(f"{scraper_name}: {error}")
        self.scraper_name = scraper_name
        self.error = error
