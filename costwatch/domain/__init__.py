"""
costwatch/domain package marker.
"""

from costwatch.domain.cost_data_point import CostDataPoint, Location
from costwatch.domain.scrape_run import ScrapeBatchResult, ScrapeResult, ValidationSummary

__all__ = [
    "CostDataPoint",
    "Location",
    "ScrapeBatchResult",
    "ScrapeResult",
    "ValidationSummary",
]
