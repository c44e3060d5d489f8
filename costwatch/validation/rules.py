"""
costwatch/validation/rules.py

Rule catalogue applied to every extracted cost data point.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import IntEnum

from costwatch.domain.cost_data_point import CostDataPoint


class Severity(IntEnum):
    INFO = 0
    WARNING = 1
    ERROR = 2


# Score deduction per failed rule.
SEVERITY_PENALTIES: dict[Severity, float] = {
    Severity.ERROR: 0.3,
    Severity.WARNING: 0.1,
    Severity.INFO: 0.05,
}

ALL_CATEGORIES = "all"

VALID_CATEGORIES = frozenset(
    {
        "Housing",
        "Utilities",
        "Transportation",
        "Food",
        "Education",
        "Entertainment",
        "Healthcare",
        "Shopping",
        "Communications",
        "Personal Care",
    }
)

VALID_EMIRATES = frozenset(
    {
        "Dubai",
        "Abu Dhabi",
        "Sharjah",
        "Ajman",
        "Umm Al Quwain",
        "Ras Al Khaimah",
        "Fujairah",
    }
)

# Plausible AED price bands per category.
PRICE_RANGES: dict[str, tuple[float, float]] = {
    "Housing": (10_000, 5_000_000),
    "Utilities": (50, 2_000),
    "Transportation": (1, 100),
    "Food": (0.5, 500),
    "Education": (5_000, 200_000),
    "Entertainment": (10, 5_000),
    "Healthcare": (50, 50_000),
    "Shopping": (1, 10_000),
    "Communications": (50, 1_000),
    "Personal Care": (10, 2_000),
}

MAX_RECORD_AGE = timedelta(days=365)


@dataclass(frozen=True)
class Rule:
    """
    A named check; `check` returns an error message, or None when it passes.
    """

    name: str
    field: str
    severity: Severity
    check: Callable[[CostDataPoint], str | None]
    category: str = ALL_CATEGORIES

    def applies_to(self, category: str) -> bool:
        return self.category == ALL_CATEGORIES or self.category == category


def _required_fields(point: CostDataPoint) -> str | None:
    if not point.item_name.strip():
        return "item name is required"
    if not point.category.strip():
        return "category is required"
    if not point.source.strip():
        return "source is required"
    if not point.location.emirate.strip():
        return "emirate is required"
    return None


def _valid_category(point: CostDataPoint) -> str | None:
    if point.category not in VALID_CATEGORIES:
        return f"invalid category: {point.category}"
    return None


def _valid_emirate(point: CostDataPoint) -> str | None:
    if point.location.emirate not in VALID_EMIRATES:
        return f"invalid emirate: {point.location.emirate}"
    return None


def _positive_price(point: CostDataPoint) -> str | None:
    if point.price <= 0:
        return f"price must be positive: {point.price}"
    return None


def _confidence(point: CostDataPoint) -> str | None:
    if point.confidence < 0.5:
        return f"low confidence score: {point.confidence}"
    return None


def _timestamp(point: CostDataPoint) -> str | None:
    recorded_at = point.recorded_at
    if recorded_at.tzinfo is None:
        recorded_at = recorded_at.replace(tzinfo=timezone.utc)
    now = datetime.now(timezone.utc)
    if recorded_at > now:
        return "recorded_at cannot be in the future"
    if now - recorded_at > MAX_RECORD_AGE:
        return "data is older than 1 year"
    return None


def _min_max_consistency(point: CostDataPoint) -> str | None:
    if point.min_price is None or point.max_price is None:
        return None
    if point.min_price > point.max_price:
        return f"min_price ({point.min_price}) cannot be greater than max_price ({point.max_price})"
    if not point.min_price <= point.price <= point.max_price:
        return (
            f"price ({point.price}) must be between min_price ({point.min_price}) "
            f"and max_price ({point.max_price})"
        )
    return None


def _sample_size(point: CostDataPoint) -> str | None:
    if point.sample_size < 1:
        return "sample size should be at least 1"
    if point.sample_size == 1 and point.confidence > 0.7:
        return f"high confidence ({point.confidence}) with sample size of 1 is suspicious"
    return None


def _price_range_rule(category: str, low: float, high: float) -> Rule:
    def check(point: CostDataPoint) -> str | None:
        if not low <= point.price <= high:
            return f"{category} price {point.price} outside expected range [{low}, {high}]"
        return None

    return Rule(
        name=f"{category.lower().replace(' ', '_')}_price_range",
        field="price",
        severity=Severity.WARNING,
        check=check,
        category=category,
    )


COMMON_RULES: tuple[Rule, ...] = (
    Rule("required_fields", "item_name", Severity.ERROR, _required_fields),
    Rule("valid_category", "category", Severity.ERROR, _valid_category),
    Rule("valid_emirate", "location", Severity.ERROR, _valid_emirate),
    Rule("positive_price", "price", Severity.ERROR, _positive_price),
    Rule("valid_confidence", "confidence", Severity.WARNING, _confidence),
    Rule("valid_timestamp", "recorded_at", Severity.ERROR, _timestamp),
    Rule("min_max_price_consistency", "price", Severity.ERROR, _min_max_consistency),
    Rule("sample_size_validation", "sample_size", Severity.WARNING, _sample_size),
)


def default_rules() -> list[Rule]:
    return [
        *COMMON_RULES,
        *(_price_range_rule(category, low, high) for category, (low, high) in PRICE_RANGES.items()),
    ]
