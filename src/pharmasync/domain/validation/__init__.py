"""Record validation, sanitisation and quarantine."""

from __future__ import annotations

from .gate import (
    ComplianceReport,
    ReviewOutcome,
    ValidationGate,
    ValidationResult,
    ValidationStatistics,
)
from .redaction import redact, sanitize
from .rules import (
    CustomRule,
    EnumRule,
    RangeRule,
    RequiredRule,
    Rule,
    RuleSet,
    Severity,
    check_rule_configuration,
    default_rules,
)

__all__ = [
    "ComplianceReport",
    "CustomRule",
    "EnumRule",
    "RangeRule",
    "RequiredRule",
    "ReviewOutcome",
    "Rule",
    "RuleSet",
    "Severity",
    "ValidationGate",
    "ValidationResult",
    "ValidationStatistics",
    "check_rule_configuration",
    "default_rules",
    "redact",
    "sanitize",
]
