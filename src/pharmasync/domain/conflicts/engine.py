"""Conflict resolution: apply a strategy, validate, write and audit in one commit."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, assert_never

from pharmasync.domain.clock import utc_now
from pharmasync.domain.errors import ConflictStateError, InvalidInputError, NotFoundError
from pharmasync.domain.model import (
    ConflictStatus,
    RecordType,
    ResolutionStrategy,
    SyncAuditEntry,
    json_safe,
    record_from_payload,
)

from .eligibility import can_auto_resolve
from .merge import merge_payloads

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from pharmasync.domain.clock import Clock
    from pharmasync.domain.model import Payload, SyncConflict
    from pharmasync.domain.ports import ConflictCount, RecordStores, UnitOfWorkFactory
    from pharmasync.domain.validation import ValidationGate

log = getLogger(__name__)

DEFAULT_RESOLVER_ID = "conflict_resolution_system"


@dataclass(frozen=True, slots=True)
class ResolutionOutcome:
    conflict_id: UUID
    strategy: ResolutionStrategy
    status: ConflictStatus
    resolved_payload: Payload
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class AutoResolveSummary:
    total_pending: int
    auto_resolved: int
    manual_required: int


@dataclass(frozen=True, slots=True)
class _ConflictView:
    """Detached copy of the fields needed to compute a resolution."""

    id: UUID
    record_type: RecordType
    record_id: str
    main_snapshot: Payload
    microservice_snapshot: Payload


class ConflictResolutionEngine:
    def __init__(
        self,
        *,
        unit_of_work_factory: UnitOfWorkFactory,
        main_stores: RecordStores,
        validator: ValidationGate,
        tenant_id: str,
        resolver_id: str = DEFAULT_RESOLVER_ID,
        inventory_tolerance: float = 0.10,
        clock: Clock = utc_now,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._main_stores = main_stores
        self._validator = validator
        self._tenant_id = tenant_id
        self._resolver_id = resolver_id
        self._inventory_tolerance = inventory_tolerance
        self._clock = clock

    def resolve(
        self,
        conflict_id: UUID,
        strategy: ResolutionStrategy | str,
        manual_payload: Mapping[str, Any] | None = None,
    ) -> ResolutionOutcome:
        """Settle a pending conflict with ``strategy``.

        The resolved value is validated before any write. The microservice write,
        the conflict transition and the audit row commit together; a concurrent
        resolution of the same conflict fails with ``ConflictStateError``.
        """

        try:
            chosen = ResolutionStrategy(strategy)
        except ValueError as exc:
            raise InvalidInputError(f"Invalid resolution strategy: {strategy}") from exc
        return self._resolve(conflict_id, chosen, manual_payload, automatic=False)

    def _resolve(
        self,
        conflict_id: UUID,
        strategy: ResolutionStrategy,
        manual_payload: Mapping[str, Any] | None,
        *,
        automatic: bool,
    ) -> ResolutionOutcome:
        with self._unit_of_work_factory() as uow:
            conflict = uow.repositories.conflicts.get(conflict_id, hospital_id=self._tenant_id)
            view = self._pending_view(conflict, conflict_id)

        resolved, warnings = self._resolved_value(view, strategy, manual_payload)
        result = self._validator.validate(resolved, view.record_type, quarantine=False)
        if not result.valid or result.sanitized_data is None:
            raise InvalidInputError(
                f"Invalid resolved data: {', '.join(result.errors)}", errors=result.errors
            )
        final = json_safe(result.sanitized_data)
        record = record_from_payload(view.record_type, final)

        if strategy is ResolutionStrategy.MICROSERVICE_WINS:
            self._main_stores.for_type(view.record_type).update(record)

        with self._unit_of_work_factory() as uow:
            repositories = uow.repositories
            conflict = repositories.conflicts.get(conflict_id, hospital_id=self._tenant_id)
            if conflict is None:
                raise NotFoundError("Conflict", conflict_id)
            conflict.mark_resolved(
                strategy=strategy,
                resolved_payload=final,
                resolved_by=self._resolver_id,
                resolved_at=self._clock(),
                automatic=automatic,
            )
            if strategy is not ResolutionStrategy.MICROSERVICE_WINS:
                repositories.records_for(view.record_type).create(record)
            repositories.audit.add(SyncAuditEntry.for_conflict(conflict))
            uow.commit()
            status = conflict.status

        log.info(f"Resolved {view.record_type} conflict {conflict_id} with {strategy} ({status})")
        return ResolutionOutcome(
            conflict_id=conflict_id,
            strategy=strategy,
            status=status,
            resolved_payload=final,
            warnings=warnings,
        )

    @staticmethod
    def _pending_view(conflict: SyncConflict | None, conflict_id: UUID) -> _ConflictView:
        if conflict is None:
            raise NotFoundError("Conflict", conflict_id)
        if not conflict.is_pending:
            raise ConflictStateError(f"Conflict {conflict_id} is already {conflict.status.value}")
        return _ConflictView(
            id=conflict.id,
            record_type=conflict.record_type,
            record_id=conflict.record_id,
            main_snapshot=dict(conflict.main_snapshot),
            microservice_snapshot=dict(conflict.microservice_snapshot),
        )

    def _resolved_value(
        self,
        view: _ConflictView,
        strategy: ResolutionStrategy,
        manual_payload: Mapping[str, Any] | None,
    ) -> tuple[Payload, tuple[str, ...]]:
        match strategy:
            case ResolutionStrategy.MAIN_WINS:
                return dict(view.main_snapshot), ()
            case ResolutionStrategy.MICROSERVICE_WINS:
                return dict(view.microservice_snapshot), ()
            case ResolutionStrategy.MERGE:
                merged = merge_payloads(
                    view.record_type,
                    view.main_snapshot,
                    view.microservice_snapshot,
                    now=self._clock(),
                    merged_by=self._resolver_id,
                )
                return merged.payload, merged.warnings
            case ResolutionStrategy.MANUAL:
                if not manual_payload:
                    raise InvalidInputError("Manual resolution requires a payload")
                payload = dict(manual_payload)
                payload.setdefault("id", view.record_id)
                payload.setdefault("hospital_id", self._tenant_id)
                return payload, ()
            case _:
                assert_never(strategy)

    def auto_resolve(self) -> AutoResolveSummary:
        pending = self.pending_conflicts()
        resolved = 0
        for conflict in pending:
            if not can_auto_resolve(
                conflict.record_type,
                conflict.main_snapshot,
                conflict.microservice_snapshot,
                inventory_tolerance=self._inventory_tolerance,
            ):
                continue
            try:
                self._resolve(conflict.id, ResolutionStrategy.MAIN_WINS, None, automatic=True)
            except Exception:
                log.exception(f"Auto-resolution failed for conflict {conflict.id}")
                continue
            resolved += 1

        summary = AutoResolveSummary(
            total_pending=len(pending),
            auto_resolved=resolved,
            manual_required=len(pending) - resolved,
        )
        log.info(
            f"Auto-resolve finished: pending={summary.total_pending}, "
            f"auto_resolved={summary.auto_resolved}, manual={summary.manual_required}"
        )
        return summary

    def pending_conflicts(self) -> list[SyncConflict]:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.conflicts.list_pending(hospital_id=self._tenant_id)

    def statistics(self) -> list[ConflictCount]:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.conflicts.counts(hospital_id=self._tenant_id)

    def pending_count(self) -> int:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.conflicts.count_pending(hospital_id=self._tenant_id)
