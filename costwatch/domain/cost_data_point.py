"""
costwatch/domain/cost_data_point.py

One priced cost-of-living observation extracted from a source page.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class Location:
    """
    Geographic location of an observation.
    """

    emirate: str
    city: str | None = None
    area: str | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CostDataPoint:
    """
    Immutable priced observation; corrections are new records with newer
    timestamps.
    """

    category: str
    item_name: str
    price: float
    location: Location
    source: str
    confidence: float
    unit: str = "AED"
    sub_category: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    median_price: float | None = None
    sample_size: int = 1
    source_url: str | None = None
    tags: tuple[str, ...] = ()
    attributes: dict[str, Any] = field(default_factory=dict)
    recorded_at: datetime = field(default_factory=_utcnow)
    valid_from: datetime = field(default_factory=_utcnow)
    valid_to: datetime | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self) -> None:
        if not 0.0 < self.confidence <= 1.0:
            raise ValueError(f"confidence must be in (0, 1], got {self.confidence}.")
