"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from dataclasses import fields
from typing import TYPE_CHECKING, Any

from sqlalchemy import case, func, insert, select, update

from pharmasync.adapters.sqlalchemy.mappings import (
    quarantined_record_table,
    record_table,
    sync_audit_entry_table,
    sync_conflict_table,
    validation_log_table,
)
from pharmasync.domain.errors import StoreError
from pharmasync.domain.model import (
    ConflictStatus,
    QuarantineDisposition,
    QuarantinedRecord,
    RecordType,
    SyncAuditEntry,
    SyncConflict,
    SyncWatermark,
    ValidationLogEntry,
    record_class,
)
from pharmasync.domain.ports import ConflictCount, ValidationTotals

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy.orm import Session


class SqlAlchemyRecordStore[TRecord]:
    """Microservice copy of one record type, stored in its Core table."""

    def __init__(self, session: Session, record_type: RecordType) -> None:
        self.session = session
        self._record_type = record_type
        self._table = record_table(record_type)
        self._record_cls: Any = record_class(record_type)

    def list_records(self, *, since: datetime | None = None) -> list[TRecord]:
        stmt = select(self._table).order_by(self._table.c.updated_at)
        if since is not None:
            stmt = stmt.where(self._table.c.updated_at > since)
        return [self._to_record(row) for row in self.session.execute(stmt).mappings()]

    def list_by_ids(self, ids: Sequence[str]) -> list[TRecord]:
        if not ids:
            return []
        stmt = select(self._table).where(self._table.c.id.in_(list(ids)))
        return [self._to_record(row) for row in self.session.execute(stmt).mappings()]

    def create(self, record: TRecord) -> TRecord:
        values = self._to_row(record)
        if self._exists(values["id"]):
            return self.update(record)
        self.session.execute(insert(self._table).values(**values))
        return record

    def update(self, record: TRecord) -> TRecord:
        values = self._to_row(record)
        result = self.session.execute(
            update(self._table).where(self._table.c.id == values["id"]).values(**values)
        )
        if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
            raise StoreError(f"{self._record_type} {values['id']} does not exist")
        return record

    def _exists(self, record_id: str) -> bool:
        stmt = select(self._table.c.id).where(self._table.c.id == record_id)
        return self.session.execute(stmt).scalar_one_or_none() is not None

    def _to_row(self, record: TRecord) -> dict[str, Any]:
        return {item.name: getattr(record, item.name) for item in fields(self._record_cls)}

    def _to_record(self, row: Any) -> TRecord:
        return self._record_cls(**dict(row))


class SqlAlchemyConflictRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, conflict: SyncConflict) -> None:
        self.session.add(conflict)

    def get(self, conflict_id: UUID, *, hospital_id: str) -> SyncConflict | None:
        stmt = (
            select(SyncConflict)
            .where(sync_conflict_table.c.id == conflict_id)
            .where(sync_conflict_table.c.hospital_id == hospital_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def find_pending(
        self, record_type: RecordType, record_id: str, *, hospital_id: str
    ) -> SyncConflict | None:
        stmt = (
            select(SyncConflict)
            .where(sync_conflict_table.c.record_type == record_type)
            .where(sync_conflict_table.c.record_id == record_id)
            .where(sync_conflict_table.c.hospital_id == hospital_id)
            .where(sync_conflict_table.c.status == ConflictStatus.PENDING)
            .order_by(sync_conflict_table.c.created_at.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_pending(self, *, hospital_id: str) -> list[SyncConflict]:
        stmt = (
            select(SyncConflict)
            .where(sync_conflict_table.c.hospital_id == hospital_id)
            .where(sync_conflict_table.c.status == ConflictStatus.PENDING)
            .order_by(sync_conflict_table.c.created_at.desc())
        )
        return list(self.session.execute(stmt).scalars())

    def count_pending(self, *, hospital_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(sync_conflict_table)
            .where(sync_conflict_table.c.hospital_id == hospital_id)
            .where(sync_conflict_table.c.status == ConflictStatus.PENDING)
        )
        return int(self.session.execute(stmt).scalar_one())

    def counts(self, *, hospital_id: str) -> list[ConflictCount]:
        table = sync_conflict_table
        stmt = (
            select(
                table.c.record_type,
                table.c.conflict_type,
                table.c.resolution_strategy,
                func.count(),
            )
            .where(table.c.hospital_id == hospital_id)
            .group_by(table.c.record_type, table.c.conflict_type, table.c.resolution_strategy)
            .order_by(table.c.record_type, func.count().desc())
        )
        return [
            ConflictCount(record_type, conflict_type, strategy, int(count))
            for record_type, conflict_type, strategy, count in self.session.execute(stmt)
        ]


class SqlAlchemyQuarantineRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, record: QuarantinedRecord) -> None:
        self.session.add(record)

    def get(self, quarantine_id: UUID, *, hospital_id: str) -> QuarantinedRecord | None:
        stmt = (
            select(QuarantinedRecord)
            .where(quarantined_record_table.c.id == quarantine_id)
            .where(quarantined_record_table.c.hospital_id == hospital_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_by_disposition(
        self, disposition: QuarantineDisposition, *, hospital_id: str
    ) -> list[QuarantinedRecord]:
        stmt = (
            select(QuarantinedRecord)
            .where(quarantined_record_table.c.hospital_id == hospital_id)
            .where(quarantined_record_table.c.disposition == disposition)
            .order_by(quarantined_record_table.c.quarantined_at.desc())
        )
        return list(self.session.execute(stmt).scalars())

    def counts(self, *, hospital_id: str) -> dict[tuple[RecordType, QuarantineDisposition], int]:
        table = quarantined_record_table
        stmt = (
            select(table.c.record_type, table.c.disposition, func.count())
            .where(table.c.hospital_id == hospital_id)
            .group_by(table.c.record_type, table.c.disposition)
        )
        return {
            (record_type, disposition): int(count)
            for record_type, disposition, count in self.session.execute(stmt)
        }

    def count_since(self, since: datetime, *, hospital_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(quarantined_record_table)
            .where(quarantined_record_table.c.hospital_id == hospital_id)
            .where(quarantined_record_table.c.quarantined_at >= since)
        )
        return int(self.session.execute(stmt).scalar_one())


class SqlAlchemyAuditRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entry: SyncAuditEntry) -> None:
        self.session.add(entry)

    def list_for_conflict(self, conflict_id: UUID) -> list[SyncAuditEntry]:
        stmt = (
            select(SyncAuditEntry)
            .where(sync_audit_entry_table.c.conflict_id == conflict_id)
            .order_by(sync_audit_entry_table.c.resolved_at)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyValidationLogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entry: ValidationLogEntry) -> None:
        self.session.add(entry)

    def totals_since(
        self, since: datetime, *, hospital_id: str
    ) -> dict[RecordType, ValidationTotals]:
        table = validation_log_table
        with_errors = func.sum(case((table.c.error_count > 0, 1), else_=0))
        stmt = (
            select(table.c.record_type, func.count(), with_errors)
            .where(table.c.hospital_id == hospital_id)
            .where(table.c.validated_at >= since)
            .group_by(table.c.record_type)
        )
        return {
            record_type: ValidationTotals(int(total), int(errors or 0))
            for record_type, total, errors in self.session.execute(stmt)
        }


class SqlAlchemyWatermarkRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, service: str) -> SyncWatermark | None:
        return self.session.get(SyncWatermark, service)

    def add(self, watermark: SyncWatermark) -> None:
        self.session.add(watermark)
