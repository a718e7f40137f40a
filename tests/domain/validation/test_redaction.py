from __future__ import annotations

from pharmasync.domain.model import RecordType
from pharmasync.domain.validation import redact, sanitize
from tests.helpers.records import NOW


def test_redact_masks_identifiers() -> None:
    text = "SSN 123-45-6789, call 5551234567 or mail jane.doe@example.org, born 1/2/1980"

    assert redact(text) == (
        "SSN XXX-XX-XXXX, call XXXXXXXXXX or mail email@masked.com, born XX/XX/XXXX"
    )


def test_redact_leaves_clinical_text_alone() -> None:
    assert redact("Take 2 tablets every 8 hours") == "Take 2 tablets every 8 hours"


def test_sanitize_masks_free_text_and_stamps_provenance() -> None:
    payload = {"id": "rx-1", "instructions": "Call 5551234567 if dizzy"}

    sanitized = sanitize(payload, RecordType.PRESCRIPTION, now=NOW)

    assert sanitized["instructions"] == "Call XXXXXXXXXX if dizzy"
    assert sanitized["sanitization"] == {
        "sanitized_at": NOW.isoformat(),
        "sanitized_by": "data_validation_service",
        "masked_fields": ["instructions"],
    }
    assert payload["instructions"] == "Call 5551234567 if dizzy"


def test_sanitize_order_notes() -> None:
    sanitized = sanitize({"notes": "patient@example.com"}, RecordType.PHARMACY_ORDER, now=NOW)

    assert sanitized["notes"] == "email@masked.com"
