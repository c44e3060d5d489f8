"""
Config helpers for scraping sources.
"""

from costwatch.scraping.config.loader import get_scraping_settings, load_source_definitions
from costwatch.scraping.config.models import (
    FallbackDefinition,
    FieldSelectors,
    ScraperConfig,
    ScrapingSettings,
    SourceDefinition,
    StrategyDefinition,
)

__all__ = [
    "FallbackDefinition",
    "FieldSelectors",
    "ScraperConfig",
    "ScrapingSettings",
    "SourceDefinition",
    "StrategyDefinition",
    "get_scraping_settings",
    "load_source_definitions",
]
