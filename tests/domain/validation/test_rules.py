from __future__ import annotations

from types import MappingProxyType

import pytest

from pharmasync.domain.errors import RuleConfigurationError
from pharmasync.domain.model import OrderStatus, RecordType
from pharmasync.domain.validation import (
    CustomRule,
    EnumRule,
    RangeRule,
    RequiredRule,
    check_rule_configuration,
    default_rules,
)
from pharmasync.domain.validation.rules import coerce_number, evaluate_rule
from tests.helpers.records import NOW


def test_default_rules_cover_every_record_type() -> None:
    rules = default_rules()

    assert set(rules) == set(RecordType)
    assert isinstance(rules, MappingProxyType)
    check_rule_configuration(rules)


def test_required_rule_rejects_none_and_empty_string() -> None:
    rule = RequiredRule("patient_id", "Patient ID is required")

    assert not evaluate_rule(rule, None, now=NOW).ok
    assert not evaluate_rule(rule, "", now=NOW).ok
    assert evaluate_rule(rule, "patient-1", now=NOW).ok


@pytest.mark.parametrize(
    ("value", "expected"),
    [("5", 5), ("2.5", 2.5), (3, 3), (True, None), ("abc", None), (float("nan"), None)],
)
def test_coerce_number(value: object, expected: float | None) -> None:
    assert coerce_number(value) == expected


def test_range_rule_reports_non_numeric_values_by_field() -> None:
    rule = RangeRule("quantity", "Quantity must be positive", minimum=0.1)

    outcome = evaluate_rule(rule, "lots", now=NOW)

    assert not outcome.ok
    assert outcome.message == "quantity must be a number"


def test_range_rule_coerces_numeric_strings() -> None:
    rule = RangeRule("quantity", "Quantity must be positive", minimum=0.1)

    outcome = evaluate_rule(rule, "12", now=NOW)

    assert outcome.ok
    assert outcome.coerced == 12
    assert not evaluate_rule(rule, "0", now=NOW).ok


def test_enum_rule_accepts_members_and_their_values() -> None:
    rule = EnumRule("status", "Invalid order status", frozenset(s.value for s in OrderStatus))

    assert evaluate_rule(rule, OrderStatus.FILLED, now=NOW).ok
    assert evaluate_rule(rule, "partially_filled", now=NOW).ok
    assert not evaluate_rule(rule, "shipped", now=NOW).ok


def test_custom_rules_for_dea_schedule_and_future_dates() -> None:
    dea = CustomRule("dea_schedule", "Invalid DEA schedule", "dea_schedule")
    future = CustomRule("expiration_date", "Expiration date must be in the future", "future_date")

    assert evaluate_rule(dea, None, now=NOW).ok
    assert evaluate_rule(dea, "II", now=NOW).ok
    assert not evaluate_rule(dea, "VI", now=NOW).ok
    assert evaluate_rule(future, "2030-01-01T00:00:00+00:00", now=NOW).ok
    assert not evaluate_rule(future, "2020-01-01", now=NOW).ok
    assert not evaluate_rule(future, "not a date", now=NOW).ok


@pytest.mark.parametrize(
    "rule",
    [
        RequiredRule("no_such_field", "Missing"),
        RangeRule("quantity", "Unbounded"),
        EnumRule("status", "Empty"),
        CustomRule("dosage", "Unregistered", "no_such_check"),
    ],
)
def test_malformed_rules_are_rejected(
    rule: RequiredRule | RangeRule | EnumRule | CustomRule,
) -> None:
    with pytest.raises(RuleConfigurationError):
        check_rule_configuration({RecordType.PRESCRIPTION: (rule,)})
