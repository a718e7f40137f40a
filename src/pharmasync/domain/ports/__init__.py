"""Ports (interfaces) that adapters implement for the domain."""

from __future__ import annotations

from .messaging import BusMessage, MessageBus
from .persistence import (
    AuditRepository,
    ConflictCount,
    ConflictRepository,
    QuarantineRepository,
    RecordStore,
    RecordStores,
    ValidationLogRepository,
    ValidationTotals,
    WatermarkRepository,
)
from .unit_of_work import (
    RepositoryCollection,
    SyncRepositories,
    SyncUnitOfWork,
    UnitOfWork,
    UnitOfWorkFactory,
)

__all__ = [
    "AuditRepository",
    "BusMessage",
    "ConflictCount",
    "ConflictRepository",
    "MessageBus",
    "QuarantineRepository",
    "RecordStore",
    "RecordStores",
    "RepositoryCollection",
    "SyncRepositories",
    "SyncUnitOfWork",
    "UnitOfWork",
    "UnitOfWorkFactory",
    "ValidationLogRepository",
    "ValidationTotals",
    "WatermarkRepository",
]
