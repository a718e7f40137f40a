"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class RecordType(StrEnum):
    """Discriminator for the four synchronised record shapes."""

    PRESCRIPTION = "prescription"
    MEDICATION = "medication"
    INVENTORY_ITEM = "inventory_item"
    PHARMACY_ORDER = "pharmacy_order"


class PrescriptionStatus(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    SUSPENDED = "suspended"


class MedicationForm(StrEnum):
    TABLET = "tablet"
    CAPSULE = "capsule"
    LIQUID = "liquid"
    INJECTION = "injection"
    TOPICAL = "topical"
    INHALER = "inhaler"


class InventoryStatus(StrEnum):
    ACTIVE = "active"
    EXPIRED = "expired"
    DISCONTINUED = "discontinued"


class OrderStatus(StrEnum):
    PENDING = "pending"
    PARTIALLY_FILLED = "partially_filled"
    FILLED = "filled"
    CANCELLED = "cancelled"


class ConflictType(StrEnum):
    DATA_MISMATCH = "data_mismatch"
    DELETION_CONFLICT = "deletion_conflict"
    CREATION_CONFLICT = "creation_conflict"


class ConflictStatus(StrEnum):
    PENDING = "pending"
    RESOLVED = "resolved"
    AUTO_RESOLVED = "auto_resolved"


class ResolutionStrategy(StrEnum):
    MAIN_WINS = "main_wins"
    MICROSERVICE_WINS = "microservice_wins"
    MERGE = "merge"
    MANUAL = "manual"


class QuarantineDisposition(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CORRECTED = "corrected"


class ReviewAction(StrEnum):
    APPROVE = "approve"
    REJECT = "reject"
    CORRECT = "correct"

    @property
    def disposition(self) -> QuarantineDisposition:
        match self:
            case ReviewAction.APPROVE:
                return QuarantineDisposition.APPROVED
            case ReviewAction.REJECT:
                return QuarantineDisposition.REJECTED
            case ReviewAction.CORRECT:
                return QuarantineDisposition.CORRECTED
