"""Full, incremental and targeted synchronisation from the main store."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from pharmasync.domain.clock import EPOCH, as_utc, utc_now
from pharmasync.domain.errors import InvalidInputError
from pharmasync.domain.model import (
    ConflictType,
    RecordType,
    SyncConflict,
    SyncWatermark,
    parse_record_type,
    record_from_payload,
    record_to_payload,
)

from .diff import differing_fields

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from pharmasync.domain.clock import Clock
    from pharmasync.domain.conflicts import ConflictResolutionEngine
    from pharmasync.domain.model import SyncedRecord
    from pharmasync.domain.ports import RecordStores, SyncRepositories, UnitOfWorkFactory
    from pharmasync.domain.validation import ValidationGate

log = getLogger(__name__)

ENTITY_ALIASES: Final[dict[str, RecordType]] = {
    "inventory": RecordType.INVENTORY_ITEM,
    "order": RecordType.PHARMACY_ORDER,
}


@dataclass(frozen=True, slots=True)
class EntitySyncResult:
    total: int = 0
    synced: int = 0
    conflicts: int = 0
    quarantined: int = 0
    missing: int = 0


@dataclass(frozen=True, slots=True)
class SyncReport:
    timestamp: datetime
    results: dict[RecordType, EntitySyncResult] = field(default_factory=dict)

    def for_type(self, record_type: RecordType) -> EntitySyncResult:
        return self.results.get(record_type, EntitySyncResult())


@dataclass(frozen=True, slots=True)
class SyncStatus:
    last_sync: datetime | None
    pending_conflicts: int
    service: str
    status: str = "active"


def resolve_entity_type(value: str | RecordType) -> RecordType:
    """Map a record type name or event alias (``inventory``, ``order``) to ``RecordType``."""

    record_type = parse_record_type(value)
    if record_type is None:
        record_type = ENTITY_ALIASES.get(str(value))
    if record_type is None:
        raise InvalidInputError(f"Unknown entity type: {value}")
    return record_type


class SyncOrchestrator:
    """Pulls main-store records into the microservice store.

    A record missing from the microservice store is created. When the main copy
    is strictly newer its significant fields decide between a plain update and a
    pending conflict. The main store is only ever read.
    """

    def __init__(
        self,
        *,
        main_stores: RecordStores,
        unit_of_work_factory: UnitOfWorkFactory,
        validator: ValidationGate,
        conflicts: ConflictResolutionEngine,
        tenant_id: str,
        service_name: str = "pharmacy",
        clock: Clock = utc_now,
    ) -> None:
        self._main_stores = main_stores
        self._unit_of_work_factory = unit_of_work_factory
        self._validator = validator
        self._conflicts = conflicts
        self._tenant_id = tenant_id
        self._service_name = service_name
        self._clock = clock

    def full_sync(self) -> SyncReport:
        log.info("Starting full pharmacy sync")
        report = SyncReport(
            timestamp=self._clock(),
            results={
                record_type: self._sync_records(
                    record_type, self._main_stores.for_type(record_type).list_records()
                )
                for record_type in RecordType
            },
        )
        self._log_report("Full", report)
        return report

    def incremental_sync(self) -> SyncReport:
        started_at = self._clock()
        with self._unit_of_work_factory() as uow:
            watermark = uow.repositories.watermarks.get(self._service_name)
            since = watermark.last_sync if watermark is not None else EPOCH
        log.info(f"Starting incremental pharmacy sync since {since.isoformat()}")

        report = SyncReport(
            timestamp=started_at,
            results={
                record_type: self._sync_records(
                    record_type,
                    self._main_stores.for_type(record_type).list_records(since=as_utc(since)),
                )
                for record_type in RecordType
            },
        )

        with self._unit_of_work_factory() as uow:
            watermark = uow.repositories.watermarks.get(self._service_name)
            if watermark is None:
                uow.repositories.watermarks.add(
                    SyncWatermark(service=self._service_name, last_sync=started_at)
                )
            else:
                watermark.last_sync = started_at
            uow.commit()

        self._log_report("Incremental", report)
        return report

    def sync_specific_entities(
        self, record_type: RecordType | str, ids: Sequence[str]
    ) -> EntitySyncResult:
        resolved_type = resolve_entity_type(record_type)
        wanted = list(dict.fromkeys(ids))
        log.info(f"Starting targeted sync of {len(wanted)} {resolved_type} record(s)")
        if not wanted:
            return EntitySyncResult()

        found = self._main_stores.for_type(resolved_type).list_by_ids(wanted)
        result = self._sync_records(resolved_type, found)
        missing = len(set(wanted) - {record.id for record in found})
        if missing:
            log.warning(f"{missing} {resolved_type} id(s) not found in the main store")
        return EntitySyncResult(
            total=result.total,
            synced=result.synced,
            conflicts=result.conflicts,
            quarantined=result.quarantined,
            missing=missing,
        )

    def sync_status(self) -> SyncStatus:
        with self._unit_of_work_factory() as uow:
            watermark = uow.repositories.watermarks.get(self._service_name)
            last_sync = as_utc(watermark.last_sync) if watermark is not None else None
        return SyncStatus(
            last_sync=last_sync,
            pending_conflicts=self._conflicts.pending_count(),
            service=self._service_name,
        )

    def _sync_records(
        self, record_type: RecordType, main_records: Iterable[SyncedRecord]
    ) -> EntitySyncResult:
        main_list = list(main_records)
        accepted: list[SyncedRecord] = []
        quarantined = 0
        for main_record in main_list:
            validation = self._validator.validate(main_record, record_type)
            if not validation.valid or validation.sanitized_data is None:
                quarantined += 1
                continue
            accepted.append(record_from_payload(record_type, validation.sanitized_data))

        synced = conflicts = 0
        with self._unit_of_work_factory() as uow:
            repositories = uow.repositories
            store = repositories.records_for(record_type)
            existing: dict[str, SyncedRecord] = {
                record.id: record for record in store.list_by_ids([r.id for r in accepted])
            }
            for main_record in accepted:
                micro_record = existing.get(main_record.id)
                if micro_record is None:
                    store.create(main_record)
                    synced += 1
                    continue
                if as_utc(main_record.updated_at) <= as_utc(micro_record.updated_at):
                    continue
                changed = differing_fields(record_type, main_record, micro_record)
                if changed:
                    self._raise_conflict(repositories, record_type, main_record, micro_record)
                    log.info(f"Conflict on {record_type} {main_record.id}: {', '.join(changed)}")
                    conflicts += 1
                else:
                    store.update(main_record)
                    synced += 1
            uow.commit()

        return EntitySyncResult(
            total=len(main_list), synced=synced, conflicts=conflicts, quarantined=quarantined
        )

    def _raise_conflict(
        self,
        repositories: SyncRepositories,
        record_type: RecordType,
        main_record: SyncedRecord,
        micro_record: SyncedRecord,
    ) -> None:
        main_snapshot = record_to_payload(main_record)
        micro_snapshot = record_to_payload(micro_record)
        pending = repositories.conflicts.find_pending(
            record_type, main_record.id, hospital_id=self._tenant_id
        )
        if pending is not None:
            pending.main_snapshot = main_snapshot
            pending.microservice_snapshot = micro_snapshot
            return
        repositories.conflicts.add(
            SyncConflict(
                record_id=main_record.id,
                record_type=record_type,
                main_snapshot=main_snapshot,
                microservice_snapshot=micro_snapshot,
                hospital_id=self._tenant_id,
                conflict_type=ConflictType.DATA_MISMATCH,
                created_at=self._clock(),
            )
        )

    @staticmethod
    def _log_report(kind: str, report: SyncReport) -> None:
        summary = ", ".join(
            f"{record_type}: total={result.total} synced={result.synced} "
            f"conflicts={result.conflicts} quarantined={result.quarantined}"
            for record_type, result in report.results.items()
        )
        log.info(f"{kind} pharmacy sync completed ({summary})")
