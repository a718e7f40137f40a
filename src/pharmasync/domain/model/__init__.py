"""Domain model for synchronised pharmacy records and their bookkeeping."""

from __future__ import annotations

from .audit import (
    QuarantinedRecord,
    SyncAuditEntry,
    SyncConflict,
    SyncWatermark,
    ValidationLogEntry,
)
from .enums import (
    ConflictStatus,
    ConflictType,
    InventoryStatus,
    MedicationForm,
    OrderStatus,
    PrescriptionStatus,
    QuarantineDisposition,
    RecordType,
    ResolutionStrategy,
    ReviewAction,
)
from .payloads import (
    Payload,
    json_safe,
    parse_record_type,
    record_class,
    record_from_payload,
    record_to_payload,
    record_type_of,
)
from .records import InventoryItem, Medication, PharmacyOrder, Prescription, SyncedRecord

__all__ = [
    "ConflictStatus",
    "ConflictType",
    "InventoryItem",
    "InventoryStatus",
    "Medication",
    "MedicationForm",
    "OrderStatus",
    "Payload",
    "PharmacyOrder",
    "Prescription",
    "PrescriptionStatus",
    "QuarantineDisposition",
    "QuarantinedRecord",
    "RecordType",
    "ResolutionStrategy",
    "ReviewAction",
    "SyncAuditEntry",
    "SyncConflict",
    "SyncWatermark",
    "SyncedRecord",
    "ValidationLogEntry",
    "json_safe",
    "parse_record_type",
    "record_class",
    "record_from_payload",
    "record_to_payload",
    "record_type_of",
]
