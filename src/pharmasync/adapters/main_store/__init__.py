"""Main hospital store adapter."""

from __future__ import annotations

from .client import (
    HttpMainRecordStore,
    build_http_main_stores,
    collection_path,
    resilience_config,
)
from .schema import ErrorResponse, RecordEnvelope, RecordPage
from .translator import MainStoreError, parse_record, serialize_record

__all__ = [
    "ErrorResponse",
    "HttpMainRecordStore",
    "MainStoreError",
    "RecordEnvelope",
    "RecordPage",
    "build_http_main_stores",
    "collection_path",
    "parse_record",
    "resilience_config",
    "serialize_record",
]
