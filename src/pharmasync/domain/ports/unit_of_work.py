"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, assert_never, runtime_checkable

from pharmasync.domain.model import RecordType

if TYPE_CHECKING:
    from types import TracebackType

    from pharmasync.domain.model import InventoryItem, Medication, PharmacyOrder, Prescription
    from pharmasync.domain.ports.persistence import (
        AuditRepository,
        ConflictRepository,
        QuarantineRepository,
        RecordStore,
        ValidationLogRepository,
        WatermarkRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class SyncRepositories(RepositoryCollection):
    """The microservice record stores plus the synchronisation bookkeeping."""

    prescriptions: RecordStore[Prescription]
    medications: RecordStore[Medication]
    inventory_items: RecordStore[InventoryItem]
    pharmacy_orders: RecordStore[PharmacyOrder]
    conflicts: ConflictRepository
    quarantine: QuarantineRepository
    audit: AuditRepository
    validation_log: ValidationLogRepository
    watermarks: WatermarkRepository

    def records_for(self, record_type: RecordType) -> RecordStore[Any]:
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


type SyncUnitOfWork = UnitOfWork[SyncRepositories]
type UnitOfWorkFactory = Callable[[], SyncUnitOfWork]
