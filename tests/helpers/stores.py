"""In-memory record stores standing in for the main hospital store."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any

from pharmasync.domain.errors import StoreError
from pharmasync.domain.model import (
    InventoryItem,
    Medication,
    PharmacyOrder,
    Prescription,
    RecordType,
    record_type_of,
)
from pharmasync.domain.ports import RecordStores

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from pharmasync.domain.model import SyncedRecord


class InMemoryRecordStore[TRecord]:
    """Dictionary-backed ``RecordStore``; keeps a log of every write."""

    def __init__(self, records: Sequence[TRecord] = ()) -> None:
        self.records: dict[str, TRecord] = {}
        self.created: list[TRecord] = []
        self.updated: list[TRecord] = []
        for record in records:
            self.records[self._id(record)] = record

    @staticmethod
    def _id(record: TRecord) -> str:
        return str(getattr(record, "id"))

    def list_records(self, *, since: datetime | None = None) -> list[TRecord]:
        return [
            record
            for record in self.records.values()
            if since is None or getattr(record, "updated_at") > since
        ]

    def list_by_ids(self, ids: Sequence[str]) -> list[TRecord]:
        return [self.records[record_id] for record_id in ids if record_id in self.records]

    def create(self, record: TRecord) -> TRecord:
        self.records[self._id(record)] = record
        self.created.append(record)
        return record

    def update(self, record: TRecord) -> TRecord:
        if self._id(record) not in self.records:
            raise StoreError(f"{self._id(record)} does not exist")
        self.records[self._id(record)] = record
        self.updated.append(record)
        return record


class FailingRecordStore(InMemoryRecordStore[Any]):
    def list_records(self, *, since: datetime | None = None) -> list[Any]:
        raise StoreError("main store unavailable")

    def list_by_ids(self, ids: Sequence[str]) -> list[Any]:
        raise StoreError("main store unavailable")


def in_memory_stores(*records: SyncedRecord) -> RecordStores:
    prescriptions: list[Prescription] = []
    medications: list[Medication] = []
    inventory_items: list[InventoryItem] = []
    pharmacy_orders: list[PharmacyOrder] = []
    for record in records:
        match record:
            case Prescription():
                prescriptions.append(record)
            case Medication():
                medications.append(record)
            case InventoryItem():
                inventory_items.append(record)
            case PharmacyOrder():
                pharmacy_orders.append(record)
    return RecordStores(
        prescriptions=InMemoryRecordStore(prescriptions),
        medications=InMemoryRecordStore(medications),
        inventory_items=InMemoryRecordStore(inventory_items),
        pharmacy_orders=InMemoryRecordStore(pharmacy_orders),
    )


def store_of(stores: RecordStores, record_type: RecordType) -> InMemoryRecordStore[Any]:
    store = stores.for_type(record_type)
    assert isinstance(store, InMemoryRecordStore)
    return store  # pyright: ignore[reportUnknownVariableType]


def put(stores: RecordStores, record: SyncedRecord, **changes: Any) -> SyncedRecord:
    """Replace ``record`` in its store with a copy carrying ``changes``."""

    updated = replace(record, **changes)
    store_of(stores, record_type_of(record)).records[updated.id] = updated
    return updated
