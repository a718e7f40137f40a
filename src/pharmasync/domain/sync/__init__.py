"""Synchronisation between the main hospital store and the pharmacy store."""

from __future__ import annotations

from .diff import differing_fields, has_significant_difference, significant_fields
from .orchestrator import (
    ENTITY_ALIASES,
    EntitySyncResult,
    SyncOrchestrator,
    SyncReport,
    SyncStatus,
    resolve_entity_type,
)

__all__ = [
    "ENTITY_ALIASES",
    "EntitySyncResult",
    "SyncOrchestrator",
    "SyncReport",
    "SyncStatus",
    "differing_fields",
    "has_significant_difference",
    "resolve_entity_type",
    "significant_fields",
]
