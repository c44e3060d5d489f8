"""
Service layer.
"""

from costwatch.services.scraper_service import RunAccountant, ScraperService, build_scraper_service

__all__ = ["RunAccountant", "ScraperService", "build_scraper_service"]
