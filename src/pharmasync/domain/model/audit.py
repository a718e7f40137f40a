"""Persisted bookkeeping around synchronisation: conflicts, quarantine, audit trail."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from pharmasync.domain.errors import ConflictStateError, QuarantineStateError

from .enums import (
    ConflictStatus,
    ConflictType,
    QuarantineDisposition,
    RecordType,
    ResolutionStrategy,
    ReviewAction,
)

if TYPE_CHECKING:
    from .payloads import Payload


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, kw_only=True)
class SyncConflict:
    """A detected divergence between the main and microservice copies of a record."""

    record_id: str
    record_type: RecordType
    main_snapshot: dict[str, Any]
    microservice_snapshot: dict[str, Any]
    hospital_id: str
    conflict_type: ConflictType = ConflictType.DATA_MISMATCH
    id: UUID = field(default_factory=uuid4)
    status: ConflictStatus = ConflictStatus.PENDING
    resolution_strategy: ResolutionStrategy | None = None
    resolved_payload: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=_utcnow)
    resolved_at: datetime | None = None
    resolved_by: str | None = None
    version: int | None = field(default=None, init=False, repr=False)

    @property
    def is_pending(self) -> bool:
        return self.status == ConflictStatus.PENDING

    def mark_resolved(
        self,
        *,
        strategy: ResolutionStrategy,
        resolved_payload: Payload,
        resolved_by: str,
        resolved_at: datetime,
        automatic: bool = False,
    ) -> None:
        if not self.is_pending:
            raise ConflictStateError(f"Conflict {self.id} is already {self.status.value}")
        self.status = ConflictStatus.AUTO_RESOLVED if automatic else ConflictStatus.RESOLVED
        self.resolution_strategy = strategy
        self.resolved_payload = dict(resolved_payload)
        self.resolved_by = resolved_by
        self.resolved_at = resolved_at


@dataclass(eq=False, kw_only=True)
class QuarantinedRecord:
    """A record that failed validation and awaits human review."""

    record_type: RecordType
    record_id: str
    payload: dict[str, Any]
    validation_errors: list[str]
    hospital_id: str
    id: UUID = field(default_factory=uuid4)
    disposition: QuarantineDisposition = QuarantineDisposition.PENDING
    quarantined_at: datetime = field(default_factory=_utcnow)
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None
    corrected_payload: dict[str, Any] | None = None

    @property
    def is_pending(self) -> bool:
        return self.disposition == QuarantineDisposition.PENDING

    def review(
        self,
        action: ReviewAction,
        *,
        reviewer: str,
        reviewed_at: datetime,
        corrected_payload: Payload | None = None,
    ) -> None:
        if not self.is_pending:
            raise QuarantineStateError(
                f"Quarantined record {self.id} was already {self.disposition.value}"
            )
        self.disposition = action.disposition
        self.reviewed_by = reviewer
        self.reviewed_at = reviewed_at
        self.corrected_payload = dict(corrected_payload) if corrected_payload is not None else None


@dataclass(eq=False, kw_only=True)
class SyncAuditEntry:
    """Write-once trail row for a resolved conflict."""

    conflict_id: UUID
    record_type: RecordType
    record_id: str
    strategy: ResolutionStrategy
    main_snapshot: dict[str, Any]
    microservice_snapshot: dict[str, Any]
    resolved_payload: dict[str, Any]
    resolved_by: str
    hospital_id: str
    id: UUID = field(default_factory=uuid4)
    resolved_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def for_conflict(cls, conflict: SyncConflict) -> SyncAuditEntry:
        if conflict.resolution_strategy is None or conflict.resolved_payload is None:
            raise ConflictStateError(f"Conflict {conflict.id} has not been resolved")
        return cls(
            conflict_id=conflict.id,
            record_type=conflict.record_type,
            record_id=conflict.record_id,
            strategy=conflict.resolution_strategy,
            main_snapshot=dict(conflict.main_snapshot),
            microservice_snapshot=dict(conflict.microservice_snapshot),
            resolved_payload=dict(conflict.resolved_payload),
            resolved_by=conflict.resolved_by or "",
            hospital_id=conflict.hospital_id,
            resolved_at=conflict.resolved_at or _utcnow(),
        )


@dataclass(eq=False, kw_only=True)
class ValidationLogEntry:
    record_type: RecordType
    record_id: str | None
    valid: bool
    error_count: int
    warning_count: int
    hospital_id: str
    id: UUID = field(default_factory=uuid4)
    validated_at: datetime = field(default_factory=_utcnow)


@dataclass(eq=False, kw_only=True)
class SyncWatermark:
    """Last successful synchronisation time for a service."""

    service: str
    last_sync: datetime
