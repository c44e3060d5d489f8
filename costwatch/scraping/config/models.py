"""
Scraping configuration models.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from costwatch.scraping.pacing import DEFAULT_RETRY_BASE_DELAY_SECONDS

if TYPE_CHECKING:
    import requests

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RATE_LIMIT_PER_SECOND = 1.0


@dataclass(frozen=True)
class ScraperConfig:
    """
    Per-source request tuning. Unset (zero/empty) values resolve to defaults
    through the `effective_*` accessors.
    """

    user_agent: str | None = None
    user_agents: tuple[str, ...] = ()
    rate_limit: float = 0.0
    timeout_seconds: float = 0.0
    max_retries: int = 0
    retry_base_delay_seconds: float = 0.0
    min_delay_seconds: float = 0.0
    max_delay_seconds: float = 0.0
    extra_headers: dict[str, str] = field(default_factory=dict)
    proxy_url: str | None = None
    base_url: str | None = None
    session: requests.Session | None = field(default=None, compare=False, repr=False)

    def effective_timeout(self) -> float:
        return self.timeout_seconds if self.timeout_seconds > 0 else DEFAULT_TIMEOUT_SECONDS

    def effective_max_retries(self) -> int:
        return self.max_retries if self.max_retries > 0 else DEFAULT_MAX_RETRIES

    def effective_rate_limit(self) -> float:
        return self.rate_limit if self.rate_limit > 0 else DEFAULT_RATE_LIMIT_PER_SECOND

    def effective_retry_base_delay(self) -> float:
        if self.retry_base_delay_seconds > 0:
            return self.retry_base_delay_seconds
        return DEFAULT_RETRY_BASE_DELAY_SECONDS

    def effective_user_agent(self, rng: random.Random | None = None) -> str:
        """
        Pick a user agent from the rotation pool, then the single configured
        one, then the built-in desktop default.
        """

        pool = [candidate.strip() for candidate in self.user_agents if candidate.strip()]
        if pool:
            return (rng or random).choice(pool)
        if self.user_agent and self.user_agent.strip():
            return self.user_agent.strip()
        return DEFAULT_USER_AGENT


@dataclass(frozen=True)
class FieldSelectors:
    """
    CSS selectors tried in order for each field of one listing element.

    A selector written as `css@attr` reads the attribute instead of the text.
    """

    price: tuple[str, ...] = ()
    title: tuple[str, ...] = ()
    location: tuple[str, ...] = ()
    link: tuple[str, ...] = ("a@href",)
    attributes: dict[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class StrategyDefinition:
    """
    One named extraction strategy: a container selector plus field selectors.
    """

    name: str
    container: str
    fields: FieldSelectors = field(default_factory=FieldSelectors)


@dataclass(frozen=True)
class FallbackDefinition:
    """
    Generic fallback: anchors whose href contains `link_pattern`, priced from
    the nearest ancestor text containing a currency keyword.
    """

    link_pattern: str
    currency_keywords: tuple[str, ...] = ("AED", "Dhs", "DHS", "aed")
    ancestor_depth: int = 2


@dataclass(frozen=True)
class SourceDefinition:
    """
    Declarative description of one target site page.
    """

    name: str
    url: str
    category: str
    scraper_type: str = "listing"
    sub_category: str | None = None
    unit: str = "AED"
    emirate: str = "Dubai"
    city: str | None = None
    tags: tuple[str, ...] = ()
    strategies: tuple[StrategyDefinition, ...] = ()
    fallback: FallbackDefinition | None = None
    confidence: float = 0.75
    fallback_confidence: float = 0.5
    max_items: int = 50
    enabled: bool = True
    config: ScraperConfig = field(default_factory=ScraperConfig)

    def __post_init__(self) -> None:
        if not 0.0 < self.fallback_confidence < self.confidence <= 1.0:
            raise ValueError(
                f"Source '{self.name}': fallback_confidence ({self.fallback_confidence}) must be "
                f"positive and strictly below confidence ({self.confidence}), which must be <= 1."
            )


@dataclass(frozen=True)
class ScrapingSettings:
    """
    Runtime settings for scraping and the validation gate.
    """

    sources_path: str
    default_user_agent: str
    default_rate_limit: float
    timeout_seconds: float
    max_retries: int
    retry_base_delay_seconds: float
    min_delay_seconds: float
    max_delay_seconds: float
    proxy_url: str | None
    enable_validation: bool
    validate_before_save: bool
    min_quality_score: float
    fail_on_validation: bool

    def base_scraper_config(self) -> ScraperConfig:
        return ScraperConfig(
            user_agent=self.default_user_agent,
            rate_limit=self.default_rate_limit,
            timeout_seconds=self.timeout_seconds,
            max_retries=self.max_retries,
            retry_base_delay_seconds=self.retry_base_delay_seconds,
            min_delay_seconds=self.min_delay_seconds,
            max_delay_seconds=self.max_delay_seconds,
            proxy_url=self.proxy_url,
        )
