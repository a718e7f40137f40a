"""SQLAlchemy metadata for the pharmacy store and the synchronisation bookkeeping.

The four record tables are used through Core statements. The bookkeeping
entities are mapped imperatively onto the domain dataclasses.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, assert_never

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from pharmasync.domain.model import (
    ConflictStatus,
    ConflictType,
    InventoryStatus,
    MedicationForm,
    OrderStatus,
    PrescriptionStatus,
    QuarantineDisposition,
    QuarantinedRecord,
    RecordType,
    ResolutionStrategy,
    SyncAuditEntry,
    SyncConflict,
    SyncWatermark,
    ValidationLogEntry,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Record tables ---------------------------------------------------------------

prescription_table = Table(
    "prescription",
    mapper_registry.metadata,
    Column("id", String, primary_key=True),
    Column("hospital_id", String, nullable=False, index=True),
    Column("patient_id", String, nullable=False),
    Column("provider_id", String, nullable=False),
    Column("medication_id", String, nullable=False),
    Column("dosage", String, nullable=False),
    Column("frequency", String, nullable=False),
    Column("duration", Integer, nullable=True),
    Column("quantity", Float, nullable=False),
    Column("instructions", String, nullable=True),
    Column("status", Enum(PrescriptionStatus, native_enum=False), nullable=False),
    Column("start_date", UTCDateTime(), nullable=False),
    Column("end_date", UTCDateTime(), nullable=True),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=False, index=True),
    Column("created_by", String, nullable=True),
    Column("updated_by", String, nullable=True),
)

medication_table = Table(
    "medication",
    mapper_registry.metadata,
    Column("id", String, primary_key=True),
    Column("hospital_id", String, nullable=False, index=True),
    Column("name", String, nullable=False),
    Column("generic_name", String, nullable=True),
    Column("brand_name", String, nullable=True),
    Column("strength", String, nullable=False),
    Column("form", Enum(MedicationForm, native_enum=False), nullable=False),
    Column("category", String, nullable=False),
    Column("requires_prescription", Boolean, nullable=False, default=True),
    Column("controlled_substance", Boolean, nullable=False, default=False),
    Column("dea_schedule", String(3), nullable=True),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=False, index=True),
)

inventory_item_table = Table(
    "inventory_item",
    mapper_registry.metadata,
    Column("id", String, primary_key=True),
    Column("hospital_id", String, nullable=False, index=True),
    Column("medication_id", String, nullable=False),
    Column("batch_number", String, nullable=False),
    Column("expiration_date", UTCDateTime(), nullable=False),
    Column("quantity_on_hand", Integer, nullable=False),
    Column("quantity_reserved", Integer, nullable=False),
    Column("unit_cost", Float, nullable=False),
    Column("selling_price", Float, nullable=False),
    Column("location", String, nullable=True),
    Column("status", Enum(InventoryStatus, native_enum=False), nullable=False),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=False, index=True),
)

pharmacy_order_table = Table(
    "pharmacy_order",
    mapper_registry.metadata,
    Column("id", String, primary_key=True),
    Column("hospital_id", String, nullable=False, index=True),
    Column("prescription_id", String, nullable=False),
    Column("patient_id", String, nullable=False),
    Column("medication_id", String, nullable=False),
    Column("quantity", Float, nullable=False),
    Column("status", Enum(OrderStatus, native_enum=False), nullable=False),
    Column("filled_date", UTCDateTime(), nullable=True),
    Column("filled_by", String, nullable=True),
    Column("notes", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=False, index=True),
)


def record_table(record_type: RecordType) -> Table:
    match record_type:
        case RecordType.PRESCRIPTION:
            return prescription_table
        case RecordType.MEDICATION:
            return medication_table
        case RecordType.INVENTORY_ITEM:
            return inventory_item_table
        case RecordType.PHARMACY_ORDER:
            return pharmacy_order_table
        case _:
            assert_never(record_type)


# Bookkeeping tables ----------------------------------------------------------

sync_conflict_table = Table(
    "sync_conflict",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("record_id", String, nullable=False),
    Column("record_type", Enum(RecordType, native_enum=False, length=32), nullable=False),
    Column("main_snapshot", JSON, nullable=False),
    Column("microservice_snapshot", JSON, nullable=False),
    Column("conflict_type", Enum(ConflictType, native_enum=False), nullable=False),
    Column(
        "resolution_strategy", Enum(ResolutionStrategy, native_enum=False, length=32), nullable=True
    ),
    Column("resolved_payload", JSON, nullable=True),
    Column("status", Enum(ConflictStatus, native_enum=False), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("resolved_at", UTCDateTime(), nullable=True),
    Column("resolved_by", String, nullable=True),
    Column("hospital_id", String, nullable=False),
    Column("version", Integer, nullable=False),
    Index("ix_sync_conflict_tenant_status", "hospital_id", "status"),
    Index("ix_sync_conflict_record", "record_type", "record_id"),
)

quarantined_record_table = Table(
    "quarantined_record",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("record_type", Enum(RecordType, native_enum=False, length=32), nullable=False),
    Column("record_id", String, nullable=False),
    Column("payload", JSON, nullable=False),
    Column("validation_errors", JSON, nullable=False),
    Column("quarantined_at", UTCDateTime(), nullable=False),
    Column("reviewed_at", UTCDateTime(), nullable=True),
    Column("reviewed_by", String, nullable=True),
    Column("disposition", Enum(QuarantineDisposition, native_enum=False), nullable=False),
    Column("corrected_payload", JSON, nullable=True),
    Column("hospital_id", String, nullable=False),
    Index("ix_quarantined_record_tenant_disposition", "hospital_id", "disposition"),
)

sync_audit_entry_table = Table(
    "sync_audit_entry",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("conflict_id", UUIDColumnType, nullable=False, index=True),
    Column("record_type", Enum(RecordType, native_enum=False, length=32), nullable=False),
    Column("record_id", String, nullable=False),
    Column("strategy", Enum(ResolutionStrategy, native_enum=False, length=32), nullable=False),
    Column("main_snapshot", JSON, nullable=False),
    Column("microservice_snapshot", JSON, nullable=False),
    Column("resolved_payload", JSON, nullable=False),
    Column("resolved_at", UTCDateTime(), nullable=False),
    Column("resolved_by", String, nullable=False),
    Column("hospital_id", String, nullable=False),
)

validation_log_table = Table(
    "validation_log_entry",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("record_type", Enum(RecordType, native_enum=False, length=32), nullable=False),
    Column("record_id", String, nullable=True),
    Column("valid", Boolean, nullable=False),
    Column("error_count", Integer, nullable=False),
    Column("warning_count", Integer, nullable=False),
    Column("validated_at", UTCDateTime(), nullable=False),
    Column("hospital_id", String, nullable=False),
    Index("ix_validation_log_entry_tenant_time", "hospital_id", "validated_at"),
)

sync_watermark_table = Table(
    "sync_watermark",
    mapper_registry.metadata,
    Column("service", String, primary_key=True),
    Column("last_sync", UTCDateTime(), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the bookkeeping entities."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(
        SyncConflict,
        sync_conflict_table,
        version_id_col=sync_conflict_table.c.version,
    )
    mapper_registry.map_imperatively(QuarantinedRecord, quarantined_record_table)
    mapper_registry.map_imperatively(SyncAuditEntry, sync_audit_entry_table)
    mapper_registry.map_imperatively(ValidationLogEntry, validation_log_table)
    mapper_registry.map_imperatively(SyncWatermark, sync_watermark_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
