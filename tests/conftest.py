from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from pharmasync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemySyncUnitOfWork,
    shutdown,
    startup,
)
from pharmasync.domain.conflicts import ConflictResolutionEngine
from pharmasync.domain.sync import SyncOrchestrator
from pharmasync.domain.validation import ValidationGate, default_rules
from tests.helpers.records import NOW, TENANT
from tests.helpers.stores import in_memory_stores

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from datetime import datetime

    from pharmasync.domain.ports import RecordStores


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: NOW


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemySyncUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemySyncUnitOfWork:
        return SqlAlchemySyncUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def main_stores() -> RecordStores:
    return in_memory_stores()


@pytest.fixture
def gate(
    sqlite_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    clock: Callable[[], datetime],
) -> ValidationGate:
    return ValidationGate(
        default_rules(),
        unit_of_work_factory=sqlite_unit_of_work,
        tenant_id=TENANT,
        clock=clock,
    )


@pytest.fixture
def conflict_engine(
    sqlite_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    main_stores: RecordStores,
    gate: ValidationGate,
    clock: Callable[[], datetime],
) -> ConflictResolutionEngine:
    return ConflictResolutionEngine(
        unit_of_work_factory=sqlite_unit_of_work,
        main_stores=main_stores,
        validator=gate,
        tenant_id=TENANT,
        clock=clock,
    )


@pytest.fixture
def orchestrator(
    sqlite_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    main_stores: RecordStores,
    gate: ValidationGate,
    conflict_engine: ConflictResolutionEngine,
    clock: Callable[[], datetime],
) -> SyncOrchestrator:
    return SyncOrchestrator(
        main_stores=main_stores,
        unit_of_work_factory=sqlite_unit_of_work,
        validator=gate,
        conflicts=conflict_engine,
        tenant_id=TENANT,
        clock=clock,
    )
