"""HTTP record stores for the main hospital store API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, assert_never

import httpx
from pydantic import ValidationError

from pharmasync.adapters.http_resilience import RateLimit, ResilienceConfig, ResilientClient
from pharmasync.config.main_store import MainStoreConfig
from pharmasync.domain.model import RecordType
from pharmasync.domain.ports import RecordStores

from .schema import ErrorResponse, RecordEnvelope, RecordPage
from .translator import MainStoreError, parse_record, serialize_record

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime

    from pharmasync.domain.model import SyncedRecord
    from pharmasync.domain.ports import RecordStore

log = getLogger(__name__)

API_PREFIX = "/api/pharmacy"
_PAGE_SIZE = 200


def collection_path(record_type: RecordType) -> str:
    match record_type:
        case RecordType.PRESCRIPTION:
            return f"{API_PREFIX}/prescriptions"
        case RecordType.MEDICATION:
            return f"{API_PREFIX}/medications"
        case RecordType.INVENTORY_ITEM:
            return f"{API_PREFIX}/inventory-items"
        case RecordType.PHARMACY_ORDER:
            return f"{API_PREFIX}/pharmacy-orders"
        case _:
            assert_never(record_type)


def resilience_config(config: MainStoreConfig) -> ResilienceConfig:
    headers = {"Accept": "application/json", "X-Hospital-Id": config.tenant_id}
    if config.api_token:
        headers["Authorization"] = f"Bearer {config.api_token}"
    return ResilienceConfig(
        name="main-store",
        base_url=config.base_url,
        timeout_seconds=config.timeout_seconds,
        ratelimit=RateLimit(max_calls=config.max_calls_per_second, per_seconds=1.0),
        default_headers=headers,
    )


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _raise_for_error(response: httpx.Response) -> None:
    if response.is_success:
        return
    try:
        error = ErrorResponse.model_validate(response.json())
        message = error.message or error.error
    except (ValueError, ValidationError):
        message = response.text or response.reason_phrase
    log.error(f"Main store error {response.status_code} for {response.request.url}: {message}")
    raise MainStoreError(message, status_code=response.status_code)


@dataclass
class HttpMainRecordStore[TRecord]:
    """``RecordStore`` over one main-store collection; each call runs its own event loop."""

    record_type: RecordType
    config: MainStoreConfig = field(default_factory=MainStoreConfig.from_environment)
    resilience: ResilienceConfig | None = None
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def _resilience(self) -> ResilienceConfig:
        return self.resilience or resilience_config(self.config)

    def list_records(self, *, since: datetime | None = None) -> list[TRecord]:
        params: dict[str, str | int] = {"hospital_id": self.config.tenant_id}
        if since is not None:
            params["updated_since"] = since.isoformat()
        return asyncio.run(self._list_pages(params))

    def list_by_ids(self, ids: Sequence[str]) -> list[TRecord]:
        if not ids:
            return []
        params: dict[str, str | int] = {
            "hospital_id": self.config.tenant_id,
            "ids": ",".join(ids),
        }
        return asyncio.run(self._list_pages(params))

    def create(self, record: TRecord) -> TRecord:
        return asyncio.run(self._write("POST", collection_path(self.record_type), record))

    def update(self, record: TRecord) -> TRecord:
        record_id = getattr(record, "id")
        path = f"{collection_path(self.record_type)}/{record_id}"
        return asyncio.run(self._write("PUT", path, record))

    async def _list_pages(self, params: dict[str, str | int]) -> list[TRecord]:
        records: list[TRecord] = []
        page = 1
        async with self.client_factory(self._resilience()) as client:
            while True:
                query = httpx.QueryParams({**params, "page": page, "limit": _PAGE_SIZE})
                response = await client.get(collection_path(self.record_type), params=query)
                _raise_for_error(response)
                try:
                    body = RecordPage.model_validate(response.json())
                except (ValueError, ValidationError) as exc:
                    raise MainStoreError(
                        f"Unexpected main store response for {self.record_type}"
                    ) from exc
                records.extend(self._parse(payload) for payload in body.data)
                if page >= body.total_pages:
                    break
                page += 1
        log.debug(f"Fetched {len(records)} {self.record_type} record(s) from the main store")
        return records

    async def _write(self, method: str, path: str, record: TRecord) -> TRecord:
        payload = serialize_record(self._as_synced(record))
        async with self.client_factory(self._resilience()) as client:
            response = await client.request(method, path, json=payload)
        _raise_for_error(response)
        try:
            body = RecordEnvelope.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise MainStoreError(f"Unexpected main store response for {method} {path}") from exc
        log.info(f"{method} {self.record_type} {payload.get('id')} on the main store")
        return self._parse(body.data)

    def _parse(self, payload: dict[str, Any]) -> TRecord:
        parsed: Any = parse_record(self.record_type, payload)
        return parsed

    @staticmethod
    def _as_synced(record: TRecord) -> SyncedRecord:
        synced: Any = record
        return synced


def build_http_main_stores(
    *,
    config: MainStoreConfig | None = None,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
) -> RecordStores:
    """Return one HTTP record store per record type, sharing a configuration."""

    effective_config = config or MainStoreConfig.from_environment()
    factory = client_factory or _default_client_factory

    def store(record_type: RecordType) -> RecordStore[Any]:
        return HttpMainRecordStore(
            record_type=record_type, config=effective_config, client_factory=factory
        )

    return RecordStores(
        prescriptions=store(RecordType.PRESCRIPTION),
        medications=store(RecordType.MEDICATION),
        inventory_items=store(RecordType.INVENTORY_ITEM),
        pharmacy_orders=store(RecordType.PHARMACY_ORDER),
    )
