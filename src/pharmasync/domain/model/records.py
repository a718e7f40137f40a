"""Synchronised pharmacy records.

Each record is owned jointly by the main hospital store and the pharmacy
service store. ``updated_at`` is the staleness clock used for comparisons.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar

from .enums import (
    InventoryStatus,
    MedicationForm,
    OrderStatus,
    PrescriptionStatus,
    RecordType,
)


@dataclass(kw_only=True)
class Prescription:
    RECORD_TYPE: ClassVar[RecordType] = RecordType.PRESCRIPTION

    id: str
    hospital_id: str
    patient_id: str
    provider_id: str
    medication_id: str
    dosage: str
    frequency: str
    quantity: float
    status: PrescriptionStatus
    start_date: datetime
    updated_at: datetime
    duration: int | None = None
    instructions: str | None = None
    end_date: datetime | None = None
    created_at: datetime | None = None
    created_by: str | None = None
    updated_by: str | None = None


@dataclass(kw_only=True)
class Medication:
    RECORD_TYPE: ClassVar[RecordType] = RecordType.MEDICATION

    id: str
    hospital_id: str
    name: str
    strength: str
    form: MedicationForm
    category: str
    updated_at: datetime
    generic_name: str | None = None
    brand_name: str | None = None
    requires_prescription: bool = True
    controlled_substance: bool = False
    dea_schedule: str | None = None
    created_at: datetime | None = None


@dataclass(kw_only=True)
class InventoryItem:
    RECORD_TYPE: ClassVar[RecordType] = RecordType.INVENTORY_ITEM

    id: str
    hospital_id: str
    medication_id: str
    batch_number: str
    expiration_date: datetime
    quantity_on_hand: int
    quantity_reserved: int
    unit_cost: float
    selling_price: float
    updated_at: datetime
    location: str | None = None
    status: InventoryStatus = InventoryStatus.ACTIVE
    created_at: datetime | None = None


@dataclass(kw_only=True)
class PharmacyOrder:
    RECORD_TYPE: ClassVar[RecordType] = RecordType.PHARMACY_ORDER

    id: str
    hospital_id: str
    prescription_id: str
    patient_id: str
    medication_id: str
    quantity: float
    status: OrderStatus
    updated_at: datetime
    filled_date: datetime | None = None
    filled_by: str | None = None
    notes: str | None = None
    created_at: datetime | None = None


type SyncedRecord = Prescription | Medication | InventoryItem | PharmacyOrder
