"""
Storage interface for accepted cost data points.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from costwatch.domain.cost_data_point import CostDataPoint


class RecordPersistenceError(Exception):
    """Raised when one record could not be written."""


class CostDataPointRepository(ABC):
    """
    Write side of cost data point persistence. The scraper service calls
    `create` once per accepted record.
    """

    @abstractmethod
    def create(self, record: CostDataPoint) -> None:
        """
        Persist one record, raising on failure.
        """
