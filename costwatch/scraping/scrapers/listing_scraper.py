"""
Declarative listing scraper: one class for every site, with site
differences expressed as a SourceDefinition.
"""

from __future__ import annotations

from datetime import datetime, timezone
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from costwatch.domain.cost_data_point import CostDataPoint
from costwatch.scraping.base import ScraperBase
from costwatch.scraping.config.models import SourceDefinition
from costwatch.scraping.parsing.cascade import (
    ExtractionCascade,
    ListingFields,
    link_fallback_strategy,
    selector_strategy,
)
from costwatch.scraping.parsing.text import parse_location


class ListingScraper(ScraperBase):
    """
    Scraper driven by the selector cascade of its source definition.
    """

    def __init__(self, *, definition: SourceDefinition, **kwargs) -> None:
        kwargs.setdefault("config", definition.config)
        super().__init__(**kwargs)
        self.definition = definition
        self.cascade: ExtractionCascade[ListingFields] = ExtractionCascade(
            [
                selector_strategy(strategy, max_items=definition.max_items)
                for strategy in definition.strategies
            ],
            fallback=(
                link_fallback_strategy(definition.fallback, max_items=definition.max_items)
                if definition.fallback is not None
                else None
            ),
        )

    @property
    def name(self) -> str:
        return self.definition.name

    def target_url(self) -> str:
        return self.definition.url

    def extract(self, *, soup: BeautifulSoup, page_url: str) -> list[CostDataPoint]:
        result = self.cascade.extract(soup)
        confidence = (
            self.definition.fallback_confidence if result.used_fallback else self.definition.confidence
        )
        recorded_at = datetime.now(timezone.utc)
        return [
            self._to_data_point(
                fields,
                page_url=page_url,
                confidence=confidence,
                strategy=result.strategy,
                recorded_at=recorded_at,
            )
            for fields in result.items
        ]

    def _to_data_point(
        self,
        fields: ListingFields,
        *,
        page_url: str,
        confidence: float,
        strategy: str | None,
        recorded_at: datetime,
    ) -> CostDataPoint:
        definition = self.definition
        return CostDataPoint(
            category=definition.category,
            sub_category=definition.sub_category,
            item_name=fields.title,
            price=fields.price,
            location=parse_location(
                fields.location_text,
                default_emirate=definition.emirate,
                default_city=definition.city,
            ),
            source=definition.name,
            source_url=self._resolve_url(fields.link, page_url=page_url),
            confidence=confidence,
            unit=definition.unit,
            sample_size=1,
            tags=definition.tags,
            attributes={**fields.attributes, "extraction_strategy": strategy},
            recorded_at=recorded_at,
            valid_from=recorded_at,
        )

    def _resolve_url(self, href: str, *, page_url: str) -> str | None:
        if not href:
            return None
        if href.startswith("//"):
            return f"https:{href}"
        base = self.config.base_url or page_url
        if href.startswith("/"):
            return urljoin(base, href)
        return urljoin(f"{base.rstrip('/')}/", href)
