"""Ports for record stores and persisted synchronisation bookkeeping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NamedTuple, Protocol, assert_never, runtime_checkable

from pharmasync.domain.model import (
    ConflictType,
    InventoryItem,
    Medication,
    PharmacyOrder,
    Prescription,
    QuarantineDisposition,
    QuarantinedRecord,
    RecordType,
    ResolutionStrategy,
    SyncAuditEntry,
    SyncConflict,
    SyncWatermark,
    ValidationLogEntry,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID


@runtime_checkable
class RecordStore[TRecord](Protocol):
    """Read/write access to one record type in one store (main or microservice).

    ``create`` of an id that already exists updates it instead, so writers may be
    invoked repeatedly for the same event.
    """

    def list_records(self, *, since: datetime | None = None) -> list[TRecord]: ...

    def list_by_ids(self, ids: Sequence[str]) -> list[TRecord]: ...

    def create(self, record: TRecord) -> TRecord: ...

    def update(self, record: TRecord) -> TRecord: ...


@dataclass(slots=True, frozen=True)
class RecordStores:
    """One record store per synchronised type."""

    prescriptions: RecordStore[Prescription]
    medications: RecordStore[Medication]
    inventory_items: RecordStore[InventoryItem]
    pharmacy_orders: RecordStore[PharmacyOrder]

    def for_type(self, record_type: RecordType) -> RecordStore[Any]:
        match record_type:
            case RecordType.PRESCRIPTION:
                return self.prescriptions
            case RecordType.MEDICATION:
                return self.medications
            case RecordType.INVENTORY_ITEM:
                return self.inventory_items
            case RecordType.PHARMACY_ORDER:
                return self.pharmacy_orders
            case _:
                assert_never(record_type)


class ConflictCount(NamedTuple):
    record_type: RecordType
    conflict_type: ConflictType
    strategy: ResolutionStrategy | None
    count: int


class ValidationTotals(NamedTuple):
    validated: int
    with_errors: int


@runtime_checkable
class ConflictRepository(Protocol):
    def add(self, conflict: SyncConflict) -> None: ...

    def get(self, conflict_id: UUID, *, hospital_id: str) -> SyncConflict | None: ...

    def find_pending(
        self, record_type: RecordType, record_id: str, *, hospital_id: str
    ) -> SyncConflict | None: ...

    def list_pending(self, *, hospital_id: str) -> list[SyncConflict]: ...

    def count_pending(self, *, hospital_id: str) -> int: ...

    def counts(self, *, hospital_id: str) -> list[ConflictCount]: ...


@runtime_checkable
class QuarantineRepository(Protocol):
    def add(self, record: QuarantinedRecord) -> None: ...

    def get(self, quarantine_id: UUID, *, hospital_id: str) -> QuarantinedRecord | None: ...

    def list_by_disposition(
        self, disposition: QuarantineDisposition, *, hospital_id: str
    ) -> list[QuarantinedRecord]: ...

    def counts(
        self, *, hospital_id: str
    ) -> dict[tuple[RecordType, QuarantineDisposition], int]: ...

    def count_since(self, since: datetime, *, hospital_id: str) -> int: ...


@runtime_checkable
class AuditRepository(Protocol):
    def add(self, entry: SyncAuditEntry) -> None: ...

    def list_for_conflict(self, conflict_id: UUID) -> list[SyncAuditEntry]: ...


@runtime_checkable
class ValidationLogRepository(Protocol):
    def add(self, entry: ValidationLogEntry) -> None: ...

    def totals_since(
        self, since: datetime, *, hospital_id: str
    ) -> dict[RecordType, ValidationTotals]: ...


@runtime_checkable
class WatermarkRepository(Protocol):
    def get(self, service: str) -> SyncWatermark | None: ...

    def add(self, watermark: SyncWatermark) -> None: ...
