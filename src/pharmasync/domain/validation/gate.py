"""Validation gate: checks, sanitises and quarantines records before they are written."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pharmasync.domain.clock import utc_now
from pharmasync.domain.errors import InvalidInputError, NotFoundError
from pharmasync.domain.model import (
    QuarantineDisposition,
    QuarantinedRecord,
    RecordType,
    ReviewAction,
    ValidationLogEntry,
    json_safe,
    parse_record_type,
    record_from_payload,
    record_to_payload,
)

from .redaction import sanitize
from .rules import Severity, check_rule_configuration, evaluate_rule

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from uuid import UUID

    from pharmasync.domain.clock import Clock
    from pharmasync.domain.model import Payload, SyncedRecord
    from pharmasync.domain.ports import RecordStore, UnitOfWorkFactory, ValidationTotals

    from .rules import RuleSet

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    sanitized_data: Payload | None = None


@dataclass(frozen=True, slots=True)
class ReviewOutcome:
    success: bool
    action: ReviewAction
    quarantine_id: UUID


@dataclass(frozen=True, slots=True)
class ValidationStatistics:
    quarantined: dict[tuple[RecordType, QuarantineDisposition], int]
    recent_validations: dict[RecordType, ValidationTotals]
    window_start: datetime


@dataclass(frozen=True, slots=True)
class ComplianceReport:
    quarantine_rate: float
    error_rate: float
    correction_rate: float
    recent_validations: dict[RecordType, ValidationTotals]
    redaction_enabled: bool = True
    audit_logging_enabled: bool = True
    masked_patterns: tuple[str, ...] = field(
        default_factory=lambda: ("national_id", "phone", "email", "date")
    )


def _ratio(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return min(1.0, numerator / denominator)


class ValidationGate:
    """Runs the configured rules for a record type and keeps the quarantine.

    ``validate`` with ``quarantine=True`` is the gate path: it records a
    validation-log row and quarantines failures in its own unit of work. Both
    writes are best-effort. Callers already inside a unit of work pass
    ``quarantine=False``.
    """

    def __init__(
        self,
        rules: RuleSet,
        *,
        unit_of_work_factory: UnitOfWorkFactory,
        tenant_id: str,
        reviewer_id: str = "quarantine_reviewer",
        compliance_window_days: int = 30,
        clock: Clock = utc_now,
    ) -> None:
        check_rule_configuration(rules)
        self._rules = rules
        self._unit_of_work_factory = unit_of_work_factory
        self._tenant_id = tenant_id
        self._reviewer_id = reviewer_id
        self._window = timedelta(days=compliance_window_days)
        self._clock = clock

    @property
    def tenant_id(self) -> str:
        return self._tenant_id

    def validate(
        self,
        data: Mapping[str, Any] | SyncedRecord,
        record_type: RecordType | str,
        *,
        quarantine: bool = True,
    ) -> ValidationResult:
        resolved_type = parse_record_type(record_type)
        if resolved_type is None or resolved_type not in self._rules:
            return ValidationResult(valid=False, errors=(f"Unknown record type: {record_type}",))

        payload = dict(data) if isinstance(data, Mapping) else record_to_payload(data)
        now = self._clock()
        errors: list[str] = []
        warnings: list[str] = []
        sanitized = dict(payload)
        for rule in self._rules[resolved_type]:
            outcome = evaluate_rule(rule, payload.get(rule.field), now=now)
            if not outcome.ok:
                target = errors if rule.severity is Severity.ERROR else warnings
                target.append(outcome.message)
            if outcome.coerced is not None:
                sanitized[rule.field] = outcome.coerced

        valid = not errors
        result = ValidationResult(
            valid=valid,
            errors=tuple(errors),
            warnings=tuple(warnings),
            sanitized_data=sanitize(sanitized, resolved_type, now=now) if valid else None,
        )
        if quarantine:
            self._record_outcome(resolved_type, payload, result)
        return result

    def validate_bulk(
        self, payloads: Iterable[Mapping[str, Any] | SyncedRecord], record_type: RecordType | str
    ) -> list[ValidationResult]:
        return [self.validate(payload, record_type) for payload in payloads]

    def _record_outcome(
        self, record_type: RecordType, payload: Payload, result: ValidationResult
    ) -> None:
        record_id = payload.get("id")
        quarantine_key = str(record_id) if record_id else f"unidentified-{uuid4().hex}"
        try:
            with self._unit_of_work_factory() as uow:
                uow.repositories.validation_log.add(
                    ValidationLogEntry(
                        record_type=record_type,
                        record_id=str(record_id) if record_id else None,
                        valid=result.valid,
                        error_count=len(result.errors),
                        warning_count=len(result.warnings),
                        hospital_id=self._tenant_id,
                        validated_at=self._clock(),
                    )
                )
                if not result.valid:
                    uow.repositories.quarantine.add(
                        QuarantinedRecord(
                            record_type=record_type,
                            record_id=quarantine_key,
                            payload=json_safe(payload),
                            validation_errors=list(result.errors),
                            hospital_id=self._tenant_id,
                            quarantined_at=self._clock(),
                        )
                    )
                uow.commit()
        except Exception:
            log.exception(f"Failed to record validation outcome for {record_type} {record_id}")
            return
        if not result.valid:
            log.warning(
                f"Quarantined {record_type} {record_id or '<no id>'}: {', '.join(result.errors)}"
            )

    def review_quarantined(
        self,
        quarantine_id: UUID,
        action: ReviewAction | str,
        corrected_payload: Mapping[str, Any] | None = None,
    ) -> ReviewOutcome:
        try:
            review_action = ReviewAction(action)
        except ValueError as exc:
            raise InvalidInputError(f"Unsupported review action: {action}") from exc
        if review_action is ReviewAction.CORRECT and not corrected_payload:
            raise InvalidInputError("Corrected data is required for correction action")

        with self._unit_of_work_factory() as uow:
            record = uow.repositories.quarantine.get(quarantine_id, hospital_id=self._tenant_id)
            if record is None:
                raise NotFoundError("Quarantined record", quarantine_id)

            match review_action:
                case ReviewAction.APPROVE:
                    candidate: Payload | None = dict(record.payload)
                case ReviewAction.CORRECT:
                    candidate = dict(corrected_payload or {})
                case ReviewAction.REJECT:
                    candidate = None

            record.review(
                review_action,
                reviewer=self._reviewer_id,
                reviewed_at=self._clock(),
                corrected_payload=(
                    json_safe(candidate) if review_action is ReviewAction.CORRECT else None
                ),
            )
            if candidate is not None:
                store = uow.repositories.records_for(record.record_type)
                self._apply(store, record, candidate, review_action)
            uow.commit()

        log.info(f"Reviewed quarantined {record.record_type} {record.record_id}: {review_action}")
        return ReviewOutcome(success=True, action=review_action, quarantine_id=quarantine_id)

    def _apply(
        self,
        store: RecordStore[Any],
        record: QuarantinedRecord,
        candidate: Payload,
        action: ReviewAction,
    ) -> None:
        result = self.validate(candidate, record.record_type, quarantine=False)
        if not result.valid or result.sanitized_data is None:
            source = "Corrected" if action is ReviewAction.CORRECT else "Quarantined"
            raise InvalidInputError(
                f"{source} data is still invalid: {', '.join(result.errors)}",
                errors=result.errors,
            )
        final = dict(result.sanitized_data)
        final.setdefault("hospital_id", self._tenant_id)
        final.setdefault("id", record.record_id)
        store.create(record_from_payload(record.record_type, final))

    def list_quarantined(
        self, disposition: QuarantineDisposition = QuarantineDisposition.PENDING
    ) -> list[QuarantinedRecord]:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.quarantine.list_by_disposition(
                disposition, hospital_id=self._tenant_id
            )

    def statistics(self) -> ValidationStatistics:
        window_start = self._clock() - self._window
        with self._unit_of_work_factory() as uow:
            quarantined = uow.repositories.quarantine.counts(hospital_id=self._tenant_id)
            recent = uow.repositories.validation_log.totals_since(
                window_start, hospital_id=self._tenant_id
            )
        return ValidationStatistics(
            quarantined=quarantined, recent_validations=recent, window_start=window_start
        )

    def compliance_report(self) -> ComplianceReport:
        window_start = self._clock() - self._window
        with self._unit_of_work_factory() as uow:
            counts = uow.repositories.quarantine.counts(hospital_id=self._tenant_id)
            quarantined_recently = uow.repositories.quarantine.count_since(
                window_start, hospital_id=self._tenant_id
            )
            recent = uow.repositories.validation_log.totals_since(
                window_start, hospital_id=self._tenant_id
            )

        validated = sum(totals.validated for totals in recent.values())
        with_errors = sum(totals.with_errors for totals in recent.values())
        corrected = sum(
            count
            for (_, disposition), count in counts.items()
            if disposition == QuarantineDisposition.CORRECTED
        )
        reviewed = sum(
            count
            for (_, disposition), count in counts.items()
            if disposition != QuarantineDisposition.PENDING
        )
        return ComplianceReport(
            quarantine_rate=_ratio(quarantined_recently, validated),
            error_rate=_ratio(with_errors, validated),
            correction_rate=_ratio(corrected, reviewed),
            recent_validations=recent,
        )
