"""
Validation of extracted cost data points before persistence.
"""

from costwatch.validation.gate import ValidationGate, ValidationGateConfig
from costwatch.validation.rules import Rule, Severity, default_rules
from costwatch.validation.validator import DefaultValidator, ValidationOutcome, Validator

__all__ = [
    "DefaultValidator",
    "Rule",
    "Severity",
    "ValidationGate",
    "ValidationGateConfig",
    "ValidationOutcome",
    "Validator",
    "default_rules",
]
