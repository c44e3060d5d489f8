from __future__ import annotations

import pytest

from costwatch.scraping.errors import ValidationFailedError
from costwatch.scraping.metrics import InMemoryMetrics
from costwatch.validation import ValidationGate, ValidationGateConfig, ValidationOutcome
from conftest import FakeValidator, make_point

GOOD = ValidationOutcome(is_valid=True, score=0.9)
LOW = ValidationOutcome(is_valid=True, score=0.5, warnings=["weak"])
BAD = ValidationOutcome(is_valid=False, score=0.2, errors=["broken"])


def _points(count: int):
    return [make_point(item_name=f"Unit {index}") for index in range(count)]


class TestPassThrough:
    @pytest.mark.parametrize(
        "config",
        [
            ValidationGateConfig(enable_validation=False),
            ValidationGateConfig(validate_before_save=False),
        ],
    )
    def test_disabled_gate_accepts_everything(self, config: ValidationGateConfig) -> None:
        validator = FakeValidator(error=RuntimeError("must not be called"))
        gate = ValidationGate(validator=validator, config=config)

        accepted, summary = gate.filter(_points(3), source="dubizzle")

        assert len(accepted) == 3
        assert summary.skipped is True
        assert summary.total == summary.valid == 3
        assert validator.calls == 0

    def test_empty_batch_is_skipped(self) -> None:
        validator = FakeValidator(outcomes=[])
        accepted, summary = ValidationGate(validator=validator).filter([], source="dubizzle")

        assert accepted == []
        assert summary.skipped is True
        assert validator.calls == 0


class TestFiltering:
    def test_keeps_valid_records_above_threshold(self) -> None:
        points = _points(4)
        metrics = InMemoryMetrics()
        gate = ValidationGate(
            validator=FakeValidator(outcomes=[GOOD, LOW, BAD, GOOD]),
            metrics=metrics,
        )

        accepted, summary = gate.filter(points, source="dubizzle")

        assert accepted == [points[0], points[3]]
        assert (summary.total, summary.valid, summary.invalid, summary.low_quality) == (4, 2, 1, 1)
        assert summary.skipped is False
        assert metrics.errors("dubizzle", "validation_invalid") == 1
        assert metrics.errors("dubizzle", "low_quality") == 1

    def test_threshold_is_inclusive(self) -> None:
        gate = ValidationGate(
            validator=FakeValidator(outcomes=[ValidationOutcome(is_valid=True, score=0.7)]),
            config=ValidationGateConfig(min_quality_score=0.7),
        )

        accepted, _ = gate.filter(_points(1), source="dubizzle")

        assert len(accepted) == 1


class TestValidatorFailure:
    def test_soft_failure_passes_batch_through(self) -> None:
        metrics = InMemoryMetrics()
        gate = ValidationGate(validator=FakeValidator(error=RuntimeError("boom")), metrics=metrics)

        accepted, summary = gate.filter(_points(3), source="dubizzle")

        assert len(accepted) == 3
        assert summary.skipped is True
        assert summary.valid == 3
        assert metrics.errors("dubizzle", "validation_failed") == 1

    def test_hard_failure_raises_with_summary(self) -> None:
        gate = ValidationGate(
            validator=FakeValidator(error=RuntimeError("boom")),
            config=ValidationGateConfig(fail_on_validation=True),
        )

        with pytest.raises(ValidationFailedError) as exc_info:
            gate.filter(_points(3), source="dubizzle")

        summary = exc_info.value.summary
        assert summary is not None
        assert (summary.total, summary.valid, summary.invalid) == (3, 0, 3)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_outcome_count_mismatch_counts_as_failure(self) -> None:
        gate = ValidationGate(
            validator=FakeValidator(outcomes=[GOOD]),
            config=ValidationGateConfig(fail_on_validation=True),
        )

        with pytest.raises(ValidationFailedError):
            gate.filter(_points(2), source="dubizzle")
