from __future__ import annotations

from pharmasync.domain.model import OrderStatus, RecordType
from pharmasync.domain.sync import differing_fields, has_significant_difference
from tests.helpers.records import LATER, make_inventory_item, make_order, make_prescription


def test_timestamps_are_not_significant() -> None:
    assert not has_significant_difference(
        RecordType.PRESCRIPTION, make_prescription(), make_prescription(updated_at=LATER)
    )


def test_free_text_outside_significant_fields_is_ignored() -> None:
    assert not has_significant_difference(
        RecordType.PRESCRIPTION,
        make_prescription(instructions="Before meals"),
        make_prescription(instructions="After meals"),
    )


def test_differing_fields_lists_changed_significant_fields() -> None:
    assert differing_fields(
        RecordType.INVENTORY_ITEM,
        make_inventory_item(quantity_on_hand=100, unit_cost=1.5),
        make_inventory_item(quantity_on_hand=90, unit_cost=1.75),
    ) == ("quantity_on_hand", "unit_cost")
    assert differing_fields(
        RecordType.PHARMACY_ORDER,
        make_order(status=OrderStatus.PENDING, notes="a"),
        make_order(status=OrderStatus.FILLED, notes="a"),
    ) == ("status",)
