from __future__ import annotations

import pytest

from pharmasync.domain.conflicts import can_auto_resolve, quantities_within_tolerance
from pharmasync.domain.model import OrderStatus, RecordType, record_to_payload
from tests.helpers.records import (
    make_inventory_item,
    make_medication,
    make_order,
    make_prescription,
)


@pytest.mark.parametrize(("micro_on_hand", "expected"), [(105, True), (120, False)])
def test_inventory_tolerance(micro_on_hand: int, expected: bool) -> None:
    main = record_to_payload(make_inventory_item(quantity_on_hand=100))
    micro = record_to_payload(make_inventory_item(quantity_on_hand=micro_on_hand))

    assert can_auto_resolve(RecordType.INVENTORY_ITEM, main, micro) is expected


def test_zero_quantities_only_match_exactly() -> None:
    assert quantities_within_tolerance(0, 0, 0.1)
    assert not quantities_within_tolerance(0, 1, 0.1)
    assert not quantities_within_tolerance("n/a", 1, 0.1)


def test_medication_conflicts_are_never_auto_resolved() -> None:
    payload = record_to_payload(make_medication())

    assert not can_auto_resolve(RecordType.MEDICATION, payload, dict(payload))


def test_prescription_requires_same_dosage_and_frequency() -> None:
    main = record_to_payload(make_prescription(quantity=30.0))

    assert can_auto_resolve(
        RecordType.PRESCRIPTION, main, record_to_payload(make_prescription(quantity=60.0))
    )
    assert not can_auto_resolve(
        RecordType.PRESCRIPTION, main, record_to_payload(make_prescription(dosage="250mg"))
    )


@pytest.mark.parametrize(
    ("main_status", "micro_status", "expected"),
    [
        ("pending", "partially_filled", True),
        ("partially_filled", "filled", True),
        ("pending", "filled", True),
        ("filled", "pending", False),
        ("pending", "cancelled", False),
    ],
)
def test_order_progressions(main_status: str, micro_status: str, expected: bool) -> None:
    main = record_to_payload(make_order(status=OrderStatus(main_status)))
    micro = record_to_payload(make_order(status=OrderStatus(micro_status)))

    assert can_auto_resolve(RecordType.PHARMACY_ORDER, main, micro) is expected
