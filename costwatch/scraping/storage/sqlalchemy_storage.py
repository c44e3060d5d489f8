"""
SQLAlchemy-backed storage for cost data points.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from costwatch.db.models import CostDataPointRecord
from costwatch.domain.cost_data_point import CostDataPoint
from costwatch.scraping.storage.base import CostDataPointRepository, RecordPersistenceError


class SQLAlchemyCostDataPointRepository(CostDataPointRepository):
    """
    Persist each record in its own transaction so one bad row never takes the
    rest of the run down with it.
    """

    def __init__(self, *, session: Session) -> None:
        self._session = session

    def create(self, record: CostDataPoint) -> None:
        try:
            self._session.add(self._to_row(record))
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise RecordPersistenceError(
                f"Failed to persist '{record.item_name}' from {record.source}: {exc}"
            ) from exc

    @staticmethod
    def _to_row(record: CostDataPoint) -> CostDataPointRecord:
        return CostDataPointRecord(
            id=record.id,
            category=record.category,
            sub_category=record.sub_category,
            item_name=record.item_name,
            price=record.price,
            min_price=record.min_price,
            max_price=record.max_price,
            median_price=record.median_price,
            sample_size=record.sample_size,
            emirate=record.location.emirate,
            city=record.location.city,
            area=record.location.area,
            source=record.source,
            source_url=record.source_url,
            confidence=record.confidence,
            unit=record.unit,
            tags=list(record.tags),
            attributes=dict(record.attributes),
            recorded_at=record.recorded_at,
            valid_from=record.valid_from,
            valid_to=record.valid_to,
        )
