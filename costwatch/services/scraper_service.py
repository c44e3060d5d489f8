"""
costwatch/services/scraper_service.py

Service orchestration for scraping runs: admission, scrape, validation gate
and per-record persistence, with an accounted result for every run.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from costwatch.domain.scrape_run import ScrapeBatchResult, ScrapeResult, ValidationSummary
from costwatch.scraping.base import ScraperBase
from costwatch.scraping.cancellation import CancelToken
from costwatch.scraping.config import get_scraping_settings, load_source_definitions
from costwatch.scraping.config.models import ScrapingSettings
from costwatch.scraping.errors import (
    RateLimitedError,
    RetryableScrapeError,
    SaveError,
    ScraperNotFoundError,
    ScraperRunError,
    ValidationFailedError,
)
from costwatch.scraping.logging_utils import error_fields, log_event
from costwatch.scraping.metrics import MetricsSink, NullMetrics
from costwatch.scraping.registry import ScraperRegistry
from costwatch.scraping.storage import CostDataPointRepository, SQLAlchemyCostDataPointRepository
from costwatch.validation import ValidationGate, ValidationGateConfig, Validator

logger = logging.getLogger(__name__)


@dataclass
class RunAccountant:
    """
    Mutable tally for one run, frozen into a ScrapeResult by `finish`.
    """

    scraper_name: str
    started_at: float = field(default_factory=time.monotonic)
    fetched: int = 0
    validation: ValidationSummary = field(default_factory=ValidationSummary)
    saved: int = 0
    save_failures: int = 0
    errors: list[BaseException] = field(default_factory=list)
    error: BaseException | None = None

    def fail(self, error: BaseException) -> None:
        self.error = error
        self.errors.append(error)

    def record_save_failure(self, error: SaveError) -> None:
        self.save_failures += 1
        self.errors.append(error)

    def finish(self) -> ScrapeResult:
        return ScrapeResult(
            scraper_name=self.scraper_name,
            fetched=self.fetched,
            validation=self.validation,
            saved=self.saved,
            save_failures=self.save_failures,
            duration_seconds=time.monotonic() - self.started_at,
            errors=tuple(self.errors),
            error=self.error,
        )


class ScraperService:
    """
    Registry of named scrapers and the pipeline that runs them.

    `run_scraper` never raises for a failed run: the terminal error is on
    `ScrapeResult.error`. `run_all_scrapers` runs sources one after another
    and isolates their failures from each other.
    """

    def __init__(
        self,
        *,
        repository: CostDataPointRepository,
        validator: Validator | None = None,
        gate_config: ValidationGateConfig | None = None,
        metrics: MetricsSink | None = None,
    ) -> None:
        self.repository = repository
        self.metrics = metrics or NullMetrics()
        self.gate = ValidationGate(validator=validator, config=gate_config, metrics=self.metrics)
        self._scrapers: dict[str, ScraperBase] = {}
        self._lock = threading.Lock()

    def register_scraper(self, scraper: ScraperBase) -> None:
        with self._lock:
            if scraper.name in self._scrapers:
                raise ValueError(f"Scraper '{scraper.name}' is already registered.")
            self._scrapers[scraper.name] = scraper
        log_event(logger, logging.INFO, "scraper_registered", scraper=scraper.name)

    def list_scrapers(self) -> list[str]:
        with self._lock:
            return list(self._scrapers)

    def run_scraper(self, name: str, *, cancel_token: CancelToken | None = None) -> ScrapeResult:
        accountant = RunAccountant(scraper_name=name)
        with self._lock:
            scraper = self._scrapers.get(name)

        if scraper is None:
            accountant.fail(ScraperNotFoundError(f"scraper not found: {name}"))
            return self._complete(accountant)

        if not scraper.can_scrape():
            accountant.fail(RateLimitedError(f"rate limit exceeded for {name}"))
            return self._complete(accountant)

        try:
            records = scraper.scrape(cancel_token)
        except Exception as exc:
            accountant.fail(exc)
            return self._complete(accountant)
        accountant.fetched = len(records)

        try:
            accepted, accountant.validation = self.gate.filter(records, source=name)
        except ValidationFailedError as exc:
            if exc.summary is not None:
                accountant.validation = exc.summary
            accountant.fail(exc)
            return self._complete(accountant)
        except Exception as exc:
            accountant.fail(exc)
            return self._complete(accountant)

        for record in accepted:
            try:
                self.repository.create(record)
            except Exception as exc:
                error = SaveError(f"save '{record.item_name}': {exc}", record=record)
                error.__cause__ = exc
                accountant.record_save_failure(error)
                log_event(
                    logger,
                    logging.WARNING,
                    "record_save_failed",
                    scraper=name,
                    item_name=record.item_name,
                    **error_fields(exc),
                )
            else:
                accountant.saved += 1

        return self._complete(accountant)

    def run_all_scrapers(self, cancel_token: CancelToken | None = None) -> ScrapeBatchResult:
        results: list[ScrapeResult] = []
        failures: list[ScraperRunError] = []
        for name in self.list_scrapers():
            result = self.run_scraper(name, cancel_token=cancel_token)
            results.append(result)
            if result.error is not None:
                run_error = ScraperRunError(name, result.error)
                run_error.__cause__ = result.error
                failures.append(run_error)

        group = ExceptionGroup("one or more scrapers failed", failures) if failures else None
        return ScrapeBatchResult(results=tuple(results), error=group)

    def _complete(self, accountant: RunAccountant) -> ScrapeResult:
        result = accountant.finish()
        name = result.scraper_name
        self.metrics.observe_duration(name, result.duration_seconds)
        self.metrics.record_error(name, "save_failed", result.save_failures)

        if result.error is not None:
            self.metrics.record_run(name, "error")
            if not isinstance(result.error, RetryableScrapeError):
                # Attempt failures are already counted by the scraper.
                self.metrics.record_error(name, getattr(result.error, "kind", "unknown"))
            log_event(
                logger,
                logging.ERROR,
                "scraper_run_failed",
                scraper=name,
                fetched=result.fetched,
                duration_seconds=round(result.duration_seconds, 3),
                **error_fields(result.error),
            )
            return result

        self.metrics.record_run(name, "success")
        log_event(
            logger,
            logging.INFO,
            "scraper_run_completed",
            scraper=name,
            fetched=result.fetched,
            valid=result.validation.valid,
            invalid=result.validation.invalid,
            low_quality=result.validation.low_quality,
            validation_skipped=result.validation.skipped,
            saved=result.saved,
            save_failures=result.save_failures,
            duration_seconds=round(result.duration_seconds, 3),
        )
        return result


def build_scraper_service(
    *,
    db: Session,
    settings: ScrapingSettings | None = None,
    registry: ScraperRegistry | None = None,
    metrics: MetricsSink | None = None,
    names: Sequence[str] | None = None,
) -> ScraperService:
    """
    Build a service with every enabled source from the sources file
    registered, optionally restricted to `names`.
    """

    settings = settings or get_scraping_settings()
    registry = registry or ScraperRegistry()
    service = ScraperService(
        repository=SQLAlchemyCostDataPointRepository(session=db),
        gate_config=gate_config_from_settings(settings),
        metrics=metrics,
    )
    definitions = load_source_definitions(
        config_path=settings.sources_path,
        defaults=settings.base_scraper_config(),
    )
    if names:
        wanted = set(names)
        definitions = [definition for definition in definitions if definition.name in wanted]
    for scraper in registry.create_enabled(definitions=definitions, metrics=service.metrics):
        service.register_scraper(scraper)
    return service


def gate_config_from_settings(settings: ScrapingSettings) -> ValidationGateConfig:
    return ValidationGateConfig(
        enable_validation=settings.enable_validation,
        validate_before_save=settings.validate_before_save,
        min_quality_score=settings.min_quality_score,
        fail_on_validation=settings.fail_on_validation,
    )
