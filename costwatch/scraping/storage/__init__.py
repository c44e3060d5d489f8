"""
Storage layer exports.
"""

from costwatch.scraping.storage.base import CostDataPointRepository, RecordPersistenceError
from costwatch.scraping.storage.sqlalchemy_storage import SQLAlchemyCostDataPointRepository

__all__ = [
    "CostDataPointRepository",
    "RecordPersistenceError",
    "SQLAlchemyCostDataPointRepository",
]
