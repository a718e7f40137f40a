"""SQLAlchemy adapter package for pharmasync."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, record_table, start_mappers
from .repositories import (
    SqlAlchemyAuditRepository,
    SqlAlchemyConflictRepository,
    SqlAlchemyQuarantineRepository,
    SqlAlchemyRecordStore,
    SqlAlchemyValidationLogRepository,
    SqlAlchemyWatermarkRepository,
)

__all__ = [
    "SqlAlchemyAuditRepository",
    "SqlAlchemyConflictRepository",
    "SqlAlchemyQuarantineRepository",
    "SqlAlchemyRecordStore",
    "SqlAlchemyValidationLogRepository",
    "SqlAlchemyWatermarkRepository",
    "create_all_tables",
    "mapper_registry",
    "record_table",
    "start_mappers",
]
