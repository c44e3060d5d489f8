"""
Scraper class registry and factory for declarative source definitions.
"""

from __future__ import annotations

import importlib
from collections.abc import Mapping, Sequence

from costwatch.scraping.base import ScraperBase
from costwatch.scraping.config.models import SourceDefinition
from costwatch.scraping.metrics import MetricsSink
from costwatch.scraping.scrapers import ListingScraper


class ScraperRegistry:
    """
    Maps `scraper_type` to a scraper class. A type written as
    `module.path:ClassName` is imported on demand.
    """

    def __init__(self, registrations: Mapping[str, type[ScraperBase]] | None = None) -> None:
        builtins: dict[str, type[ScraperBase]] = {"listing": ListingScraper}
        if registrations:
            builtins.update({key.strip().lower(): value for key, value in registrations.items()})
        self._registrations = builtins

    def register(self, *, scraper_type: str, scraper_class: type[ScraperBase]) -> None:
        self._registrations[scraper_type.strip().lower()] = scraper_class

    def create_scraper(
        self,
        *,
        definition: SourceDefinition,
        metrics: MetricsSink | None = None,
    ) -> ScraperBase:
        scraper_class = self._resolve_scraper_class(definition)
        return scraper_class(definition=definition, metrics=metrics)

    def create_enabled(
        self,
        *,
        definitions: Sequence[SourceDefinition],
        metrics: MetricsSink | None = None,
    ) -> list[ScraperBase]:
        return [
            self.create_scraper(definition=definition, metrics=metrics)
            for definition in definitions
            if definition.enabled
        ]

    def _resolve_scraper_class(self, definition: SourceDefinition) -> type[ScraperBase]:
        if ":" in definition.scraper_type:
            return self._load_dynamic_class(definition.scraper_type)

        resolved = self._registrations.get(definition.scraper_type)
        if resolved is None:
            allowed = ", ".join(sorted(self._registrations))
            raise ValueError(
                f"Unknown scraper_type='{definition.scraper_type}' for source='{definition.name}'. "
                f"Allowed types: {allowed}."
            )
        return resolved

    @staticmethod
    def _load_dynamic_class(path: str) -> type[ScraperBase]:
        module_path, class_name = path.split(":", 1)
        module = importlib.import_module(module_path)
        loaded = getattr(module, class_name, None)
        if loaded is None:
            raise ValueError(f"Unable to resolve scraper class '{path}'.")
        if not isinstance(loaded, type) or not issubclass(loaded, ScraperBase):
            raise ValueError(f"Class '{path}' must inherit from ScraperBase.")
        return loaded
