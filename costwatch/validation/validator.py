"""
costwatch/validation/validator.py

Batch validator for extracted cost data points.

Each record is scored by the rule catalogue, then the batch as a whole is
checked for price outliers (IQR per category) and duplicates, which lower
the affected records' scores.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

import numpy as np

from costwatch.domain.cost_data_point import CostDataPoint
from costwatch.validation.rules import SEVERITY_PENALTIES, Rule, Severity, default_rules

OUTLIER_IQR_MULTIPLIER = 1.5
OUTLIER_MIN_GROUP_SIZE = 3
OUTLIER_PENALTY = 0.9
DUPLICATE_PENALTY = 0.95


@dataclass(frozen=True)
class ValidationOutcome:
    is_valid: bool
    score: float
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class Validator(ABC):
    """
    Scores a batch of records. Must return exactly one outcome per record,
    in input order.
    """

    @abstractmethod
    def validate_batch(self, records: Sequence[CostDataPoint]) -> list[ValidationOutcome]:
        """Validate `records` and return their outcomes."""


class DefaultValidator(Validator):
    def __init__(self, rules: Sequence[Rule] | None = None) -> None:
        self._rules = list(rules) if rules is not None else default_rules()

    def validate(self, record: CostDataPoint) -> ValidationOutcome:
        errors: list[str] = []
        warnings: list[str] = []
        score = 1.0

        for rule in self._rules:
            if not rule.applies_to(record.category):
                continue
            message = rule.check(record)
            if message is None:
                continue
            score -= SEVERITY_PENALTIES[rule.severity]
            if rule.severity == Severity.ERROR:
                errors.append(f"{rule.name}: {message}")
            else:
                warnings.append(f"{rule.name}: {message}")

        return ValidationOutcome(
            is_valid=not errors,
            score=min(1.0, max(0.0, score)),
            errors=errors,
            warnings=warnings,
        )

    def validate_batch(self, records: Sequence[CostDataPoint]) -> list[ValidationOutcome]:
        if not records:
            raise ValueError("no records to validate")

        outcomes = [self.validate(record) for record in records]
        for index in _outlier_indexes(records):
            outcome = outcomes[index]
            outcomes[index] = replace(
                outcome,
                score=outcome.score * OUTLIER_PENALTY,
                warnings=[*outcome.warnings, "price is a statistical outlier within its category"],
            )
        for index in _duplicate_indexes(records):
            outcome = outcomes[index]
            outcomes[index] = replace(
                outcome,
                score=outcome.score * DUPLICATE_PENALTY,
                warnings=[*outcome.warnings, "potential duplicate record"],
            )
        return outcomes


def _outlier_indexes(records: Sequence[CostDataPoint]) -> set[int]:
    groups: dict[str, list[int]] = defaultdict(list)
    for index, record in enumerate(records):
        groups[record.category].append(index)

    flagged: set[int] = set()
    for indexes in groups.values():
        if len(indexes) < OUTLIER_MIN_GROUP_SIZE:
            continue
        prices = np.array([records[index].price for index in indexes], dtype=float)
        q1, q3 = np.percentile(prices, [25, 75])
        iqr = q3 - q1
        lower = q1 - OUTLIER_IQR_MULTIPLIER * iqr
        upper = q3 + OUTLIER_IQR_MULTIPLIER * iqr
        flagged.update(
            index for index, price in zip(indexes, prices) if price < lower or price > upper
        )
    return flagged


def _duplicate_indexes(records: Sequence[CostDataPoint]) -> set[int]:
    """Indexes of every record after the first sharing a signature."""
    seen: set[str] = set()
    duplicates: set[int] = set()
    for index, record in enumerate(records):
        signature = _signature(record)
        if signature in seen:
            duplicates.add(index)
        seen.add(signature)
    return duplicates


def _signature(record: CostDataPoint) -> str:
    return "|".join(
        (
            record.category,
            record.item_name.strip().lower(),
            record.location.emirate,
            str(round(record.price)),
            record.source,
        )
    )
