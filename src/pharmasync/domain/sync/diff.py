"""Significant-field comparison between the main and microservice copies of a record."""

from __future__ import annotations

from typing import TYPE_CHECKING, assert_never

from pharmasync.domain.model import RecordType

if TYPE_CHECKING:
    from pharmasync.domain.model import SyncedRecord


def significant_fields(record_type: RecordType) -> tuple[str, ...]:
    match record_type:
        case RecordType.PRESCRIPTION:
            return ("dosage", "frequency", "quantity", "status")
        case RecordType.MEDICATION:
            return ("name", "strength", "form", "controlled_substance")
        case RecordType.INVENTORY_ITEM:
            return ("quantity_on_hand", "quantity_reserved", "unit_cost", "selling_price")
        case RecordType.PHARMACY_ORDER:
            return ("quantity", "status", "notes")
        case _:
            assert_never(record_type)


def differing_fields(
    record_type: RecordType, main: SyncedRecord, micro: SyncedRecord
) -> tuple[str, ...]:
    return tuple(
        name
        for name in significant_fields(record_type)
        if getattr(main, name) != getattr(micro, name)
    )


def has_significant_difference(
    record_type: RecordType, main: SyncedRecord, micro: SyncedRecord
) -> bool:
    return bool(differing_fields(record_type, main, micro))
