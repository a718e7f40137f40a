from __future__ import annotations

import json
from typing import TYPE_CHECKING
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from pharmasync.app import Services
from pharmasync.domain.conflicts import ConflictResolutionEngine, ResolutionOutcome
from pharmasync.domain.errors import NotFoundError
from pharmasync.domain.model import ConflictStatus, ResolutionStrategy
from pharmasync.domain.sync import SyncOrchestrator, SyncStatus
from pharmasync.domain.validation import ValidationGate, ValidationResult
from pharmasync.events import EventIngestionGateway
from pharmasync.ui import cli
from tests.helpers.records import NOW, prescription_payload

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def services() -> Services:
    return Services(
        validator=MagicMock(spec=ValidationGate),
        conflicts=MagicMock(spec=ConflictResolutionEngine),
        orchestrator=MagicMock(spec=SyncOrchestrator),
    )


def _main(argv: list[str], services: Services) -> None:
    cli.main(argv, services_factory=lambda: services, gateway_factory=MagicMock())


def test_status_prints_json(services: Services, capsys: pytest.CaptureFixture[str]) -> None:
    orchestrator = MagicMock(spec=SyncOrchestrator)
    orchestrator.sync_status.return_value = SyncStatus(
        last_sync=NOW, pending_conflicts=2, service="pharmacy"
    )
    wired = Services(services.validator, services.conflicts, orchestrator)

    _main(["status"], wired)

    document = json.loads(capsys.readouterr().out)
    assert document["pending_conflicts"] == 2
    assert document["service"] == "pharmacy"
    assert document["last_sync"].startswith("2025-01-15T12:00:00")


def test_resolve_passes_strategy_and_payload(
    services: Services, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    conflict_id = uuid4()
    payload_file = tmp_path / "resolved.json"
    payload_file.write_text(json.dumps(prescription_payload()), encoding="utf-8")
    conflicts = MagicMock(spec=ConflictResolutionEngine)
    conflicts.resolve.return_value = ResolutionOutcome(
        conflict_id=conflict_id,
        strategy=ResolutionStrategy.MANUAL,
        status=ConflictStatus.RESOLVED,
        resolved_payload=prescription_payload(),
    )
    wired = Services(services.validator, conflicts, services.orchestrator)

    _main(
        [
            "resolve",
            str(conflict_id),
            "--strategy",
            "manual",
            "--payload-file",
            str(payload_file),
        ],
        wired,
    )

    conflicts.resolve.assert_called_once_with(conflict_id, "manual", prescription_payload())
    assert json.loads(capsys.readouterr().out)["status"] == "resolved"


def test_resolve_rejects_malformed_id(services: Services) -> None:
    with pytest.raises(SystemExit) as excinfo:
        _main(["resolve", "not-a-uuid", "--strategy", "main_wins"], services)

    assert excinfo.value.code == 2


def test_resolve_of_unknown_conflict_exits_with_usage_error(services: Services) -> None:
    conflicts = MagicMock(spec=ConflictResolutionEngine)
    conflicts.resolve.side_effect = NotFoundError("Conflict", "missing")
    wired = Services(services.validator, conflicts, services.orchestrator)

    with pytest.raises(SystemExit) as excinfo:
        _main(["resolve", str(uuid4()), "--strategy", "main_wins"], wired)

    assert excinfo.value.code == 2


def test_validate_exits_three_when_payload_is_invalid(
    services: Services, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    payload_file = tmp_path / "record.json"
    payload_file.write_text(json.dumps({"id": "rx-1"}), encoding="utf-8")
    validator = MagicMock(spec=ValidationGate)
    validator.validate.return_value = ValidationResult(
        valid=False, errors=("Patient ID is required",)
    )
    wired = Services(validator, services.conflicts, services.orchestrator)

    with pytest.raises(SystemExit) as excinfo:
        _main(["validate", "prescription", str(payload_file), "--no-quarantine"], wired)

    assert excinfo.value.code == 3
    validator.validate.assert_called_once_with({"id": "rx-1"}, "prescription", quarantine=False)
    assert json.loads(capsys.readouterr().out)["errors"] == ["Patient ID is required"]


def test_validate_rejects_non_object_payload(services: Services, tmp_path: Path) -> None:
    payload_file = tmp_path / "record.json"
    payload_file.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        _main(["validate", "prescription", str(payload_file)], services)

    assert excinfo.value.code == 2


def test_unexpected_failure_exits_with_one(services: Services) -> None:
    orchestrator = MagicMock(spec=SyncOrchestrator)
    orchestrator.full_sync.side_effect = RuntimeError("main store down")
    wired = Services(services.validator, services.conflicts, orchestrator)

    with pytest.raises(SystemExit) as excinfo:
        _main(["full-sync"], wired)

    assert excinfo.value.code == 1


def test_listen_runs_the_gateway(services: Services) -> None:
    gateway = MagicMock(spec=EventIngestionGateway)

    cli.main(["listen"], services_factory=lambda: services, gateway_factory=lambda _: gateway)

    gateway.run_forever.assert_called_once_with()


def test_unknown_subcommand_is_rejected(services: Services) -> None:
    with pytest.raises(SystemExit) as excinfo:
        _main(["explode"], services)

    assert excinfo.value.code == 2
