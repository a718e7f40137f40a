"""Masking of personal identifiers in free-text record fields."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Final, assert_never

from pharmasync.domain.model import RecordType

if TYPE_CHECKING:
    from datetime import datetime

SANITIZED_BY: Final[str] = "data_validation_service"

_PATTERNS: Final[tuple[tuple[re.Pattern[str], str], ...]] = (
    (re.compile(r"\b\d{3}-\d{2}-\d{4}\b"), "XXX-XX-XXXX"),
    (re.compile(r"\b\d{10}\b"), "XXXXXXXXXX"),
    (re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"), "email@masked.com"),
    (re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b"), "XX/XX/XXXX"),
)


def redact(text: str) -> str:
    for pattern, replacement in _PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def redacted_fields(record_type: RecordType) -> tuple[str, ...]:
    match record_type:
        case RecordType.PRESCRIPTION:
            return ("instructions",)
        case RecordType.PHARMACY_ORDER:
            return ("notes",)
        case RecordType.MEDICATION | RecordType.INVENTORY_ITEM:
            return ()
        case _:
            assert_never(record_type)


def sanitize(payload: dict[str, Any], record_type: RecordType, *, now: datetime) -> dict[str, Any]:
    """Return a copy of ``payload`` with free text masked and a provenance stamp."""

    masked_fields = redacted_fields(record_type)
    sanitized = dict(payload)
    for name in masked_fields:
        value = sanitized.get(name)
        if isinstance(value, str) and value:
            sanitized[name] = redact(value)
    sanitized["sanitization"] = {
        "sanitized_at": now.isoformat(),
        "sanitized_by": SANITIZED_BY,
        "masked_fields": list(masked_fields),
    }
    return sanitized
