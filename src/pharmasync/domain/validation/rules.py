"""Declarative validation rules per record type.

Rules are plain immutable values. ``default_rules()`` builds the standard set
once; ``check_rule_configuration`` rejects malformed sets up front so a bad rule
surfaces as a system error instead of a record failure.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from datetime import UTC, datetime
from enum import Enum, StrEnum
from types import MappingProxyType
from typing import Any, Final, NamedTuple, assert_never

from pharmasync.domain.errors import RuleConfigurationError
from pharmasync.domain.model import (
    MedicationForm,
    OrderStatus,
    PrescriptionStatus,
    RecordType,
    record_class,
)


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True, slots=True)
class RequiredRule:
    field: str
    message: str
    severity: Severity = Severity.ERROR


@dataclass(frozen=True, slots=True)
class RangeRule:
    field: str
    message: str
    minimum: float | None = None
    maximum: float | None = None
    severity: Severity = Severity.ERROR


@dataclass(frozen=True, slots=True)
class EnumRule:
    field: str
    message: str
    values: frozenset[str] = frozenset()
    severity: Severity = Severity.ERROR


@dataclass(frozen=True, slots=True)
class CustomRule:
    field: str
    message: str
    check: str
    severity: Severity = Severity.ERROR


type Rule = RequiredRule | RangeRule | EnumRule | CustomRule
type RuleSet = Mapping[RecordType, tuple[Rule, ...]]
type CustomCheck = Callable[[Any, datetime], bool]


class RuleOutcome(NamedTuple):
    ok: bool
    message: str
    coerced: float | int | None = None


DEA_SCHEDULES: Final[frozenset[str]] = frozenset({"I", "II", "III", "IV", "V"})


def _valid_dea_schedule(value: Any, now: datetime) -> bool:
    return not value or value in DEA_SCHEDULES


def _in_future(value: Any, now: datetime) -> bool:
    moment = _parse_datetime(value)
    return moment is not None and moment > now


CUSTOM_CHECKS: Final[Mapping[str, CustomCheck]] = MappingProxyType(
    {
        "dea_schedule": _valid_dea_schedule,
        "future_date": _in_future,
    }
)


def _parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str) and value.strip():
        try:
            moment = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=UTC)


def coerce_number(value: Any) -> float | int | None:
    """Return ``value`` as a number or ``None`` when it is not numeric."""

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) else value
    if isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
        if math.isnan(number):
            return None
        return int(number) if number.is_integer() and "." not in value else number
    return None


def evaluate_rule(rule: Rule, value: Any, *, now: datetime) -> RuleOutcome:
    match rule:
        case RequiredRule():
            return RuleOutcome(value is not None and value != "", rule.message)
        case RangeRule():
            number = coerce_number(value)
            if number is None:
                return RuleOutcome(False, f"{rule.field} must be a number")
            ok = (rule.minimum is None or number >= rule.minimum) and (
                rule.maximum is None or number <= rule.maximum
            )
            return RuleOutcome(ok, rule.message, number)
        case EnumRule():
            candidate = value.value if isinstance(value, Enum) else value
            return RuleOutcome(candidate in rule.values, rule.message)
        case CustomRule():
            return RuleOutcome(CUSTOM_CHECKS[rule.check](value, now), rule.message)
        case _:
            assert_never(rule)


def _values(enum_type: type[StrEnum]) -> frozenset[str]:
    return frozenset(member.value for member in enum_type)


def default_rules() -> RuleSet:
    """Standard rule set for the four synchronised record types."""

    rules: dict[RecordType, tuple[Rule, ...]] = {
        RecordType.PRESCRIPTION: (
            RequiredRule("patient_id", "Patient ID is required"),
            RequiredRule("medication_id", "Medication ID is required"),
            RequiredRule("provider_id", "Provider ID is required"),
            RequiredRule("dosage", "Dosage is required"),
            RequiredRule("frequency", "Frequency is required"),
            RangeRule("quantity", "Quantity must be positive", minimum=0.1),
            EnumRule("status", "Invalid status", _values(PrescriptionStatus)),
            RequiredRule("start_date", "Start date is required"),
        ),
        RecordType.MEDICATION: (
            RequiredRule("name", "Medication name is required"),
            RequiredRule("strength", "Strength is required"),
            EnumRule("form", "Invalid form", _values(MedicationForm)),
            RequiredRule("category", "Category is required"),
            CustomRule(
                "dea_schedule", "Invalid DEA schedule for controlled substance", "dea_schedule"
            ),
        ),
        RecordType.INVENTORY_ITEM: (
            RequiredRule("medication_id", "Medication ID is required"),
            RequiredRule("batch_number", "Batch number is required"),
            RequiredRule("expiration_date", "Expiration date is required"),
            RangeRule("quantity_on_hand", "Quantity on hand cannot be negative", minimum=0),
            RangeRule("quantity_reserved", "Quantity reserved cannot be negative", minimum=0),
            RangeRule("unit_cost", "Unit cost cannot be negative", minimum=0),
            RangeRule("selling_price", "Selling price cannot be negative", minimum=0),
            CustomRule(
                "expiration_date",
                "Expiration date must be in the future",
                "future_date",
                severity=Severity.WARNING,
            ),
        ),
        RecordType.PHARMACY_ORDER: (
            RequiredRule("prescription_id", "Prescription ID is required"),
            RequiredRule("patient_id", "Patient ID is required"),
            RequiredRule("medication_id", "Medication ID is required"),
            RangeRule("quantity", "Order quantity must be positive", minimum=0.1),
            EnumRule("status", "Invalid order status", _values(OrderStatus)),
        ),
    }
    return MappingProxyType(rules)


def check_rule_configuration(rules: RuleSet) -> None:
    """Raise ``RuleConfigurationError`` for any rule that cannot be evaluated."""

    for record_type, record_rules in rules.items():
        known_fields = {item.name for item in fields(record_class(record_type))}
        for rule in record_rules:
            if rule.field not in known_fields:
                raise RuleConfigurationError(
                    f"{record_type.value} rule references unknown field {rule.field!r}"
                )
            match rule:
                case RangeRule(minimum=None, maximum=None):
                    raise RuleConfigurationError(
                        f"{record_type.value} range rule on {rule.field!r} has no bounds"
                    )
                case EnumRule(values=values) if not values:
                    raise RuleConfigurationError(
                        f"{record_type.value} enum rule on {rule.field!r} has no values"
                    )
                case CustomRule(check=check) if check not in CUSTOM_CHECKS:
                    raise RuleConfigurationError(
                        f"{record_type.value} custom rule on {rule.field!r} "
                        f"uses unregistered check {check!r}"
                    )
                case _:
                    pass
