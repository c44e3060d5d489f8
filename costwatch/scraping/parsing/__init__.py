"""
HTML parsing layer: extraction cascade and text helpers.
"""

from costwatch.scraping.parsing.cascade import (
    CascadeResult,
    ExtractionCascade,
    ExtractionStrategy,
    ListingFields,
    link_fallback_strategy,
    selector_strategy,
)
from costwatch.scraping.parsing.text import clean_text, parse_location, parse_price

__all__ = [
    "CascadeResult",
    "ExtractionCascade",
    "ExtractionStrategy",
    "ListingFields",
    "clean_text",
    "link_fallback_strategy",
    "parse_location",
    "parse_price",
    "selector_strategy",
]
