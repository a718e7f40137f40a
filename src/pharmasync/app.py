"""Application wiring: build the services from configuration and default adapters."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from pharmasync.adapters.main_store import build_http_main_stores
from pharmasync.adapters.redis_streams import RedisStreamBus
from pharmasync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemySyncUnitOfWork,
    is_started,
    startup,
)
from pharmasync.config import get_bus_config, get_sync_config
from pharmasync.domain.clock import utc_now
from pharmasync.domain.conflicts import ConflictResolutionEngine
from pharmasync.domain.sync import SyncOrchestrator
from pharmasync.domain.validation import ValidationGate, default_rules
from pharmasync.events import EventIngestionGateway

if TYPE_CHECKING:
    from pharmasync.config import BusConfig, SyncConfig
    from pharmasync.domain.clock import Clock
    from pharmasync.domain.ports import MessageBus, RecordStores, UnitOfWorkFactory
    from pharmasync.domain.validation import RuleSet

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Services:
    validator: ValidationGate
    conflicts: ConflictResolutionEngine
    orchestrator: SyncOrchestrator


def build_services(
    *,
    main_stores: RecordStores | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    sync_config: SyncConfig | None = None,
    rules: RuleSet | None = None,
    clock: Clock = utc_now,
) -> Services:
    """Wire the gate, the engine and the orchestrator.

    Without an explicit unit-of-work factory the SQLAlchemy adapter is started
    (once) from ``DATABASE_URI`` and used for every unit of work.
    """

    config = sync_config or get_sync_config()
    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemySyncUnitOfWork
    effective_stores = main_stores or build_http_main_stores()

    validator = ValidationGate(
        rules or default_rules(),
        unit_of_work_factory=unit_of_work_factory,
        tenant_id=config.tenant_id,
        reviewer_id=config.reviewer_id,
        compliance_window_days=config.compliance_window_days,
        clock=clock,
    )
    conflicts = ConflictResolutionEngine(
        unit_of_work_factory=unit_of_work_factory,
        main_stores=effective_stores,
        validator=validator,
        tenant_id=config.tenant_id,
        resolver_id=config.resolver_id,
        inventory_tolerance=config.inventory_tolerance,
        clock=clock,
    )
    orchestrator = SyncOrchestrator(
        main_stores=effective_stores,
        unit_of_work_factory=unit_of_work_factory,
        validator=validator,
        conflicts=conflicts,
        tenant_id=config.tenant_id,
        service_name=config.service_name,
        clock=clock,
    )
    log.debug(f"Services wired for tenant {config.tenant_id}")
    return Services(validator=validator, conflicts=conflicts, orchestrator=orchestrator)


def build_gateway(
    services: Services,
    *,
    bus: MessageBus | None = None,
    bus_config: BusConfig | None = None,
    clock: Clock = utc_now,
) -> EventIngestionGateway:
    config = bus_config or get_bus_config()
    effective_bus = bus or RedisStreamBus.from_config(config)
    return EventIngestionGateway(
        bus=effective_bus,
        orchestrator=services.orchestrator,
        topics=config.topics,
        poll_timeout=config.poll_timeout_ms / 1000,
        source=config.source,
        consumer_group=config.consumer_group,
        clock=clock,
    )
