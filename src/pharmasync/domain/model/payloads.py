"""Conversion between typed records and their JSON payload form.

Payloads are what conflicts, quarantine rows, bus envelopes and the main-store
API carry. Dispatch is exhaustive over ``RecordType``.
"""

from __future__ import annotations

from functools import cache
from typing import TYPE_CHECKING, Any, assert_never

from pydantic import TypeAdapter, ValidationError
from pydantic_core import to_jsonable_python

from pharmasync.domain.errors import InvalidInputError

from .enums import RecordType
from .records import InventoryItem, Medication, PharmacyOrder, Prescription

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .records import SyncedRecord

type Payload = dict[str, Any]


def record_class(
    record_type: RecordType,
) -> type[Prescription] | type[Medication] | type[InventoryItem] | type[PharmacyOrder]:
    match record_type:
        case RecordType.PRESCRIPTION:
            return Prescription
        case RecordType.MEDICATION:
            return Medication
        case RecordType.INVENTORY_ITEM:
            return InventoryItem
        case RecordType.PHARMACY_ORDER:
            return PharmacyOrder
        case _:
            assert_never(record_type)


def record_type_of(record: SyncedRecord) -> RecordType:
    match record:
        case Prescription():
            return RecordType.PRESCRIPTION
        case Medication():
            return RecordType.MEDICATION
        case InventoryItem():
            return RecordType.INVENTORY_ITEM
        case PharmacyOrder():
            return RecordType.PHARMACY_ORDER
        case _:
            assert_never(record)


def parse_record_type(value: str | RecordType) -> RecordType | None:
    """Return the record type for ``value`` or ``None`` if it is not one of the four."""

    if isinstance(value, RecordType):
        return value
    try:
        return RecordType(value)
    except ValueError:
        return None


@cache
def _adapter(record_type: RecordType) -> TypeAdapter[Any]:
    return TypeAdapter(record_class(record_type))


def record_to_payload(record: SyncedRecord) -> Payload:
    """Serialise ``record`` to a JSON-safe mapping (ISO timestamps, enum values)."""

    payload: Payload = _adapter(record_type_of(record)).dump_python(record, mode="json")
    return payload


def json_safe(payload: Mapping[str, Any]) -> Payload:
    """Return ``payload`` with datetimes, enums and UUIDs in their JSON form."""

    converted: Payload = to_jsonable_python(dict(payload))
    return converted


def record_from_payload(record_type: RecordType, payload: Mapping[str, Any]) -> SyncedRecord:
    """Build a typed record from ``payload``; unknown keys are ignored."""

    try:
        record: SyncedRecord = _adapter(record_type).validate_python(dict(payload))
    except ValidationError as exc:
        messages = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        raise InvalidInputError(
            f"Payload is not a valid {record_type.value}", errors=messages
        ) from exc
    return record
