"""
Scraper subclass exports.
"""

from costwatch.scraping.scrapers.listing_scraper import ListingScraper

__all__ = ["ListingScraper"]
