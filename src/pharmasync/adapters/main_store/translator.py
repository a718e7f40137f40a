"""Translate main-store payloads to domain records and back."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pharmasync.domain.errors import InvalidInputError, StoreError
from pharmasync.domain.model import record_from_payload, record_to_payload

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pharmasync.domain.model import Payload, RecordType, SyncedRecord


class MainStoreError(StoreError):
    """Raised when the main store returns an error or an unexpected payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def parse_record(record_type: RecordType, payload: Mapping[str, Any]) -> SyncedRecord:
    try:
        return record_from_payload(record_type, payload)
    except InvalidInputError as exc:
        details = "; ".join(exc.errors)
        raise MainStoreError(
            f"Main store returned an invalid {record_type} payload: {details}"
        ) from exc


def serialize_record(record: SyncedRecord) -> Payload:
    return record_to_payload(record)
