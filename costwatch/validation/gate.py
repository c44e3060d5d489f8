"""
costwatch/validation/gate.py

Filters a scraped batch down to the records worth persisting.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from costwatch.domain.cost_data_point import CostDataPoint
from costwatch.domain.scrape_run import ValidationSummary
from costwatch.scraping.errors import ValidationFailedError
from costwatch.scraping.logging_utils import error_fields, log_event
from costwatch.scraping.metrics import MetricsSink, NullMetrics
from costwatch.validation.validator import DefaultValidator, ValidationOutcome, Validator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationGateConfig:
    enable_validation: bool = True
    validate_before_save: bool = True
    min_quality_score: float = 0.7
    fail_on_validation: bool = False


class ValidationGate:
    """
    Runs the validator once per batch and keeps records that are valid and
    score at least `min_quality_score`.

    When the validator itself fails, the batch is either passed through
    unfiltered or rejected with ValidationFailedError, depending on
    `fail_on_validation`.
    """

    def __init__(
        self,
        *,
        validator: Validator | None = None,
        config: ValidationGateConfig | None = None,
        metrics: MetricsSink | None = None,
    ) -> None:
        self.validator = validator or DefaultValidator()
        self.config = config or ValidationGateConfig()
        self.metrics = metrics or NullMetrics()

    def filter(
        self,
        records: Sequence[CostDataPoint],
        *,
        source: str,
    ) -> tuple[list[CostDataPoint], ValidationSummary]:
        total = len(records)
        if not self.config.enable_validation or not self.config.validate_before_save or not records:
            return list(records), ValidationSummary(total=total, valid=total, skipped=True)

        try:
            outcomes = self.validator.validate_batch(records)
            if len(outcomes) != total:
                raise ValueError(f"validator returned {len(outcomes)} outcomes for {total} records")
        except Exception as exc:
            return self._on_validator_failure(records, source=source, exc=exc)

        accepted: list[CostDataPoint] = []
        invalid = 0
        low_quality = 0
        for record, outcome in zip(records, outcomes):
            if not outcome.is_valid:
                invalid += 1
                self._log_rejected(record, outcome, source=source, reason="invalid")
            elif outcome.score < self.config.min_quality_score:
                low_quality += 1
                self._log_rejected(record, outcome, source=source, reason="low_quality")
            else:
                accepted.append(record)

        summary = ValidationSummary(
            total=total,
            valid=len(accepted),
            invalid=invalid,
            low_quality=low_quality,
        )
        self.metrics.record_error(source, "validation_invalid", invalid)
        self.metrics.record_error(source, "low_quality", low_quality)
        log_event(
            logger,
            logging.INFO,
            "validation_completed",
            source=source,
            total=total,
            valid=summary.valid,
            invalid=invalid,
            low_quality=low_quality,
        )
        return accepted, summary

    def _on_validator_failure(
        self,
        records: Sequence[CostDataPoint],
        *,
        source: str,
        exc: Exception,
    ) -> tuple[list[CostDataPoint], ValidationSummary]:
        total = len(records)
        self.metrics.record_error(source, "validation_failed")
        log_event(
            logger,
            logging.ERROR,
            "validator_failed",
            source=source,
            total=total,
            fail_on_validation=self.config.fail_on_validation,
            **error_fields(exc),
        )
        if self.config.fail_on_validation:
            summary = ValidationSummary(total=total, invalid=total)
            raise ValidationFailedError(f"validation failed: {exc}", summary=summary) from exc
        return list(records), ValidationSummary(total=total, valid=total, skipped=True)

    @staticmethod
    def _log_rejected(
        record: CostDataPoint,
        outcome: ValidationOutcome,
        *,
        source: str,
        reason: str,
    ) -> None:
        log_event(
            logger,
            logging.DEBUG,
            "record_rejected",
            source=source,
            item_name=record.item_name,
            reason=reason,
            score=round(outcome.score, 3),
            errors=outcome.errors,
        )
