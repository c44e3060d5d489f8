"""
tests/conftest.py

Shared fakes for the scraping pipeline: HTTP session, scrapers, validator
and repository. Nothing here touches the network or a real database.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone

import pytest
import requests

from costwatch.domain.cost_data_point import CostDataPoint, Location
from costwatch.scraping.base import ScraperBase
from costwatch.scraping.cancellation import CancelToken
from costwatch.scraping.config.models import (
    FallbackDefinition,
    FieldSelectors,
    ScraperConfig,
    SourceDefinition,
    StrategyDefinition,
)
from costwatch.scraping.storage import CostDataPointRepository, RecordPersistenceError
from costwatch.validation.validator import ValidationOutcome, Validator

LISTING_PAGE = """
<html><body>
  <ul>
    <li data-testid="listing-item">
      <h2>Marina Heights 1BR</h2>
      <span data-testid="listing-price">AED 85,000 /year</span>
      <span data-testid="listing-location">Dubai Marina, Dubai</span>
      <a href="/property-for-rent/marina-heights-1">View</a>
    </li>
    <li data-testid="listing-item">
      <h2>Creek Vista Studio</h2>
      <span data-testid="listing-price">AED 52,000 /year</span>
      <span data-testid="listing-location">Dubai Creek Harbour, Dubai</span>
      <a href="/property-for-rent/creek-vista-2">View</a>
    </li>
  </ul>
</body></html>
"""

FALLBACK_PAGE = """
<html><body>
  <section>
    <div class="card">
      <div class="body">
        <a href="/property-for-rent/jvc-3" title="JVC Two Bedroom">JVC</a>
        <span>95,000 AED</span>
      </div>
    </div>
  </section>
</body></html>
"""

BLOCK_PAGE = """
<html><body>
  <h1>Verify you are a human</h1>
  <p>Please complete the security check to continue.</p>
</body></html>
"""

EMPTY_PAGE = "<html><body><p>No results for your search.</p></body></html>"


@dataclass
class FakeResponse:
    status_code: int = 200
    text: str = ""


class FakeSession:
    """
    Stand-in for requests.Session. Replays `responses` in order and keeps
    replaying the last one; an exception instance in the list is raised.
    """

    def __init__(self, responses: Sequence[FakeResponse | Exception]) -> None:
        self._responses = list(responses)
        self.calls: list[dict] = []
        self.call_times: list[float] = []

    def get(self, url: str, **kwargs) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        self.call_times.append(time.monotonic())
        index = min(len(self.calls) - 1, len(self._responses) - 1)
        response = self._responses[index]
        if isinstance(response, Exception):
            raise response
        return response


def fast_config(session: FakeSession, **overrides) -> ScraperConfig:
    values = {
        "rate_limit": 1000.0,
        "max_retries": 3,
        "retry_base_delay_seconds": 0.01,
        "timeout_seconds": 5.0,
        "session": session,
    }
    values.update(overrides)
    return ScraperConfig(**values)


def listing_definition(config: ScraperConfig, **overrides) -> SourceDefinition:
    definition = SourceDefinition(
        name="dubizzle",
        url="https://dubai.example.com/property-for-rent/",
        category="Housing",
        sub_category="Rent",
        emirate="Dubai",
        city="Dubai",
        strategies=(
            StrategyDefinition(
                name="listing-item",
                container="li[data-testid='listing-item']",
                fields=FieldSelectors(
                    price=("[data-testid='listing-price']",),
                    title=("h2",),
                    location=("[data-testid='listing-location']",),
                ),
            ),
        ),
        fallback=FallbackDefinition(link_pattern="/property-for-rent/"),
        confidence=0.75,
        fallback_confidence=0.5,
        config=replace(config, base_url="https://dubai.example.com"),
    )
    return replace(definition, **overrides)


def make_point(**overrides) -> CostDataPoint:
    values = {
        "category": "Housing",
        "item_name": "Marina Heights 1BR",
        "price": 85_000.0,
        "location": Location(emirate="Dubai", city="Dubai", area="Dubai Marina"),
        "source": "dubizzle",
        "confidence": 0.6,
        "sample_size": 1,
        "recorded_at": datetime.now(timezone.utc) - timedelta(minutes=5),
    }
    values.update(overrides)
    return CostDataPoint(**values)


class StaticScraper(ScraperBase):
    """
    Scraper returning fixed records, or raising `error`, without any I/O.
    """

    def __init__(
        self,
        name: str,
        *,
        records: Sequence[CostDataPoint] = (),
        error: Exception | None = None,
        admit: bool = True,
    ) -> None:
        super().__init__(config=ScraperConfig(), session=requests.Session())
        self._name = name
        self._records = list(records)
        self._error = error
        self._admit = admit
        self.scrape_calls = 0

    @property
    def name(self) -> str:
        return self._name

    def target_url(self) -> str:
        return f"https://example.com/{self._name}"

    def extract(self, *, soup, page_url):
        return list(self._records)

    def can_scrape(self) -> bool:
        return self._admit

    def scrape(self, cancel_token: CancelToken | None = None) -> list[CostDataPoint]:
        self.scrape_calls += 1
        if self._error is not None:
            raise self._error
        return list(self._records)


class FakeValidator(Validator):
    def __init__(
        self,
        outcome_for: Callable[[CostDataPoint], ValidationOutcome] | None = None,
        *,
        error: Exception | None = None,
        outcomes: list[ValidationOutcome] | None = None,
    ) -> None:
        self._outcome_for = outcome_for
        self._error = error
        self._outcomes = outcomes
        self.calls = 0

    def validate_batch(self, records: Sequence[CostDataPoint]) -> list[ValidationOutcome]:
        self.calls += 1
        if self._error is not None:
            raise self._error
        if self._outcomes is not None:
            return list(self._outcomes)
        assert self._outcome_for is not None
        return [self._outcome_for(record) for record in records]


class InMemoryRepository(CostDataPointRepository):
    def __init__(self, *, fail_items: set[str] | None = None) -> None:
        self.saved: list[CostDataPoint] = []
        self._fail_items = fail_items or set()

    def create(self, record: CostDataPoint) -> None:
        if record.item_name in self._fail_items:
            raise RecordPersistenceError(f"cannot store {record.item_name}")
        self.saved.append(record)


@pytest.fixture()
def repository() -> InMemoryRepository:
    return InMemoryRepository()
