"""
costwatch/domain/scrape_run.py

Outcome models for one scraper run.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ValidationSummary:
    """
    How many records passed the validation gate and why others were dropped.
    """

    total: int = 0
    valid: int = 0
    invalid: int = 0
    low_quality: int = 0
    skipped: bool = False


@dataclass(frozen=True)
class ScrapeResult:
    """
    Outcome of running one scraper end-to-end.

    Always populated, even when the run failed: callers inspect `errors` and
    `save_failures` to learn whether anything succeeded.
    """

    scraper_name: str
    fetched: int = 0
    validation: ValidationSummary = field(default_factory=ValidationSummary)
    saved: int = 0
    save_failures: int = 0
    duration_seconds: float = 0.0
    errors: tuple[BaseException, ...] = ()
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        """True when the run finished without a terminal error."""
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


@dataclass(frozen=True)
class ScrapeBatchResult:
    """
    Results of running every registered scraper.
    """

    results: tuple[ScrapeResult, ...] = ()
    error: BaseExceptionGroup | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def by_name(self) -> dict[str, ScrapeResult]:
        return {result.scraper_name: result for result in self.results}
