"""
Cascading extraction strategies over parsed HTML documents.

Strategies run in order and the first one that yields at least one item wins;
results from different strategies are never merged. When every specific
strategy comes back empty, a single generic fallback strategy gets one try.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from bs4 import BeautifulSoup, Tag

from costwatch.scraping.config.models import FallbackDefinition, StrategyDefinition
from costwatch.scraping.logging_utils import log_event
from costwatch.scraping.parsing.text import clean_text, first_value, parse_price

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ExtractionStrategy(Generic[T]):
    """
    A selection function plus a per-element extraction function.

    `extract` returns None for elements that do not carry a usable record.
    """

    name: str
    select: Callable[[BeautifulSoup], Iterable[Tag]]
    extract: Callable[[Tag], T | None]
    max_items: int | None = None
    dedupe_key: Callable[[T], Hashable] | None = None

    def run(self, soup: BeautifulSoup) -> list[T]:
        items: list[T] = []
        seen: set[Hashable] = set()
        for element in self.select(soup):
            item = self.extract(element)
            if item is None:
                continue
            if self.dedupe_key is not None:
                key = self.dedupe_key(item)
                if key in seen:
                    continue
                seen.add(key)
            items.append(item)
            if self.max_items is not None and len(items) >= self.max_items:
                break
        return items


@dataclass(frozen=True)
class CascadeResult(Generic[T]):
    strategy: str | None
    items: list[T] = field(default_factory=list)
    used_fallback: bool = False


class ExtractionCascade(Generic[T]):
    """
    Ordered strategies with an optional generic fallback.
    """

    def __init__(
        self,
        strategies: Sequence[ExtractionStrategy[T]],
        *,
        fallback: ExtractionStrategy[T] | None = None,
    ) -> None:
        self._strategies = tuple(strategies)
        self._fallback = fallback

    @property
    def strategy_names(self) -> list[str]:
        names = [strategy.name for strategy in self._strategies]
        if self._fallback is not None:
            names.append(self._fallback.name)
        return names

    def extract(self, soup: BeautifulSoup) -> CascadeResult[T]:
        for strategy in self._strategies:
            items = strategy.run(soup)
            if items:
                log_event(
                    logger,
                    logging.DEBUG,
                    "strategy_matched",
                    strategy=strategy.name,
                    count=len(items),
                )
                return CascadeResult(strategy=strategy.name, items=items)

        if self._fallback is None:
            return CascadeResult(strategy=None)

        items = self._fallback.run(soup)
        log_event(
            logger,
            logging.INFO,
            "fallback_strategy_used",
            strategy=self._fallback.name,
            count=len(items),
        )
        return CascadeResult(
            strategy=self._fallback.name if items else None,
            items=items,
            used_fallback=True,
        )


@dataclass(frozen=True)
class ListingFields:
    """
    Raw fields of one listing element, already checked for a price and title.
    """

    title: str
    price: float
    location_text: str = ""
    link: str = ""
    attributes: dict[str, str] = field(default_factory=dict)


def selector_strategy(
    definition: StrategyDefinition,
    *,
    max_items: int | None = None,
) -> ExtractionStrategy[ListingFields]:
    """
    Build a strategy from declarative container and field selectors.
    """

    selectors = definition.fields

    def select(soup: BeautifulSoup) -> list[Tag]:
        return soup.select(definition.container)

    def extract(node: Tag) -> ListingFields | None:
        price = parse_price(first_value(node, selectors.price))
        title = first_value(node, selectors.title)
        if price is None or not title:
            return None
        attributes = {
            name: value
            for name, attribute_selectors in selectors.attributes.items()
            if (value := first_value(node, attribute_selectors))
        }
        return ListingFields(
            title=title,
            price=price,
            location_text=first_value(node, selectors.location),
            link=first_value(node, selectors.link),
            attributes=attributes,
        )

    return ExtractionStrategy(
        name=definition.name,
        select=select,
        extract=extract,
        max_items=max_items,
    )


def link_fallback_strategy(
    definition: FallbackDefinition,
    *,
    max_items: int | None = None,
) -> ExtractionStrategy[ListingFields]:
    """
    Heuristic strategy: anchors pointing at detail pages, priced from the
    nearest ancestor container.
    """

    keywords = tuple(keyword for keyword in definition.currency_keywords if keyword)

    def select(soup: BeautifulSoup) -> list[Tag]:
        return soup.find_all(
            "a",
            href=lambda href: bool(href) and definition.link_pattern in href,
        )

    def extract(link: Tag) -> ListingFields | None:
        card = _ancestor(link, definition.ancestor_depth)
        price = parse_price(_currency_text(card, keywords))
        if price is None:
            return None
        title = clean_text(link.get("title")) or clean_text(link.get_text(" ", strip=True))
        if not title:
            return None
        return ListingFields(title=title, price=price, link=clean_text(link.get("href")))

    return ExtractionStrategy(
        name="generic_link_fallback",
        select=select,
        extract=extract,
        max_items=max_items,
        dedupe_key=lambda fields: fields.link,
    )


def _ancestor(node: Tag, depth: int) -> Tag:
    current = node
    for _ in range(max(1, depth)):
        parent = current.parent
        if parent is None or not isinstance(parent, Tag) or parent.name == "[document]":
            break
        current = parent
    return current


def _currency_text(card: Tag, keywords: tuple[str, ...]) -> str:
    """
    Text of the smallest element under `card` that mentions a currency keyword.
    """

    best = ""
    for element in card.find_all(["span", "div", "p", "strong", "b"]):
        text = clean_text(element.get_text(" ", strip=True))
        if not text or not any(keyword in text for keyword in keywords):
            continue
        if not best or len(text) < len(best):
            best = text
    return best
