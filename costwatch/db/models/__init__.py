"""
Model package exports.

Import all SQLAlchemy models here so metadata registration works without
extra imports.
"""

from costwatch.db.models.cost_data_point_record import CostDataPointRecord

__all__ = ["CostDataPointRecord"]
