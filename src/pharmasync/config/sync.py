"""Synchronisation defaults for the pharmacy service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from .env import env_float, env_int, require_env_vars

DEFAULT_SERVICE_NAME: Final[str] = "pharmacy"
DEFAULT_RESOLVER_ID: Final[str] = "conflict_resolution_system"
DEFAULT_COMPLIANCE_WINDOW_DAYS: Final[int] = 30
DEFAULT_INVENTORY_TOLERANCE: Final[float] = 0.10


@dataclass(frozen=True, slots=True)
class SyncConfig:
    tenant_id: str
    service_name: str = DEFAULT_SERVICE_NAME
    resolver_id: str = DEFAULT_RESOLVER_ID
    reviewer_id: str = "quarantine_reviewer"
    compliance_window_days: int = DEFAULT_COMPLIANCE_WINDOW_DAYS
    inventory_tolerance: float = DEFAULT_INVENTORY_TOLERANCE


def get_sync_config() -> SyncConfig:
    tenant_id = require_env_vars(["PHARMASYNC_TENANT_ID"])["PHARMASYNC_TENANT_ID"]
    return SyncConfig(
        tenant_id=tenant_id,
        service_name=os.getenv("PHARMASYNC_SERVICE_NAME") or DEFAULT_SERVICE_NAME,
        resolver_id=os.getenv("PHARMASYNC_RESOLVER_ID") or DEFAULT_RESOLVER_ID,
        reviewer_id=os.getenv("PHARMASYNC_REVIEWER_ID") or "quarantine_reviewer",
        compliance_window_days=env_int(
            "PHARMASYNC_COMPLIANCE_WINDOW_DAYS", DEFAULT_COMPLIANCE_WINDOW_DAYS
        ),
        inventory_tolerance=env_float(
            "PHARMASYNC_INVENTORY_TOLERANCE", DEFAULT_INVENTORY_TOLERANCE
        ),
    )
