from __future__ import annotations

from typing import TYPE_CHECKING

from pharmasync.app import build_gateway, build_services
from pharmasync.config import BusConfig, SyncConfig
from pharmasync.domain.model import RecordType
from tests.helpers.bus import InMemoryBus
from tests.helpers.records import TENANT, make_prescription
from tests.helpers.stores import in_memory_stores

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from pharmasync.adapters.sqlalchemy.unit_of_work import SqlAlchemySyncUnitOfWork


def test_prescription_event_flows_into_the_local_store(
    sqlite_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    clock: Callable[[], datetime],
) -> None:
    main_stores = in_memory_stores(make_prescription("rx-7"))
    services = build_services(
        main_stores=main_stores,
        unit_of_work_factory=sqlite_unit_of_work,
        sync_config=SyncConfig(tenant_id=TENANT),
        clock=clock,
    )
    bus = InMemoryBus()
    config = BusConfig(consumer_name="test-consumer", poll_timeout_ms=10)
    gateway = build_gateway(services, bus=bus, bus_config=config, clock=clock)

    bus.deliver(
        config.topics.prescription_updates,
        {"type": "prescription_created", "recordId": "rx-7", "data": {}},
    )

    assert gateway.poll_once(config.topics.prescription_updates) == 1
    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.prescriptions.list_by_ids(["rx-7"])
    assert [record.id for record in stored] == ["rx-7"]
    assert len(bus.acked) == 1
    status = services.orchestrator.sync_status()
    assert status.pending_conflicts == 0
    assert status.service == "pharmacy"
    assert gateway.health_status().topics[config.topics.prescription_updates].processed == 1
    assert RecordType.PRESCRIPTION in services.orchestrator.full_sync().results
