"""Factories for pharmacy records used across tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from pharmasync.domain.model import (
    InventoryItem,
    Medication,
    MedicationForm,
    OrderStatus,
    PharmacyOrder,
    Prescription,
    PrescriptionStatus,
    record_to_payload,
)

TENANT = "hospital-1"
NOW = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)
EARLIER = NOW - timedelta(hours=2)
LATER = NOW + timedelta(hours=2)


def make_prescription(record_id: str = "rx-1", **overrides: Any) -> Prescription:
    values: dict[str, Any] = {
        "id": record_id,
        "hospital_id": TENANT,
        "patient_id": "patient-1",
        "provider_id": "provider-1",
        "medication_id": "med-1",
        "dosage": "500mg",
        "frequency": "twice daily",
        "quantity": 30.0,
        "status": PrescriptionStatus.ACTIVE,
        "start_date": NOW - timedelta(days=1),
        "updated_at": NOW,
        "instructions": "Take with food",
    }
    values.update(overrides)
    return Prescription(**values)


def make_medication(record_id: str = "med-1", **overrides: Any) -> Medication:
    values: dict[str, Any] = {
        "id": record_id,
        "hospital_id": TENANT,
        "name": "Amoxicillin",
        "strength": "500mg",
        "form": MedicationForm.CAPSULE,
        "category": "antibiotic",
        "updated_at": NOW,
    }
    values.update(overrides)
    return Medication(**values)


def make_inventory_item(record_id: str = "inv-1", **overrides: Any) -> InventoryItem:
    values: dict[str, Any] = {
        "id": record_id,
        "hospital_id": TENANT,
        "medication_id": "med-1",
        "batch_number": "B-100",
        "expiration_date": NOW + timedelta(days=365),
        "quantity_on_hand": 100,
        "quantity_reserved": 10,
        "unit_cost": 1.5,
        "selling_price": 3.0,
        "updated_at": NOW,
    }
    values.update(overrides)
    return InventoryItem(**values)


def make_order(record_id: str = "ord-1", **overrides: Any) -> PharmacyOrder:
    values: dict[str, Any] = {
        "id": record_id,
        "hospital_id": TENANT,
        "prescription_id": "rx-1",
        "patient_id": "patient-1",
        "medication_id": "med-1",
        "quantity": 30.0,
        "status": OrderStatus.PENDING,
        "updated_at": NOW,
    }
    values.update(overrides)
    return PharmacyOrder(**values)


def prescription_payload(record_id: str = "rx-1", **overrides: Any) -> dict[str, Any]:
    """JSON-form prescription payload, as a producer or reviewer would send it."""

    payload = record_to_payload(make_prescription(record_id))
    payload.update(overrides)
    return payload
