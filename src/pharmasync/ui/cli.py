# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from dotenv import load_dotenv
from pydantic_core import to_jsonable_python

from pharmasync.adapters.sqlalchemy.migrations import upgrade_head
from pharmasync.app import build_gateway, build_services
from pharmasync.config import configure_logging, level_from_environment
from pharmasync.domain.errors import InvalidInputError, NotFoundError
from pharmasync.domain.model import (
    QuarantineDisposition,
    ResolutionStrategy,
    ReviewAction,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from pharmasync.app import Services
    from pharmasync.domain.sync import SyncReport
    from pharmasync.events import EventIngestionGateway

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synchronise pharmacy records")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("full-sync", help="Sync every record from the main store")
    subparsers.add_parser(
        "incremental-sync", help="Sync records changed since the last incremental sync"
    )

    entities = subparsers.add_parser("sync-entities", help="Sync specific records by id")
    entities.add_argument(
        "entity_type",
        type=str,
        help="Record type (prescription, medication, inventory_item, pharmacy_order)",
    )
    entities.add_argument("ids", nargs="+", help="Record ids to sync")

    subparsers.add_parser("status", help="Show last sync time and pending conflicts")

    conflicts = subparsers.add_parser("conflicts", help="List pending conflicts")
    conflicts.add_argument(
        "--stats",
        action="store_true",
        help="Show counts grouped by record type, conflict type and strategy instead",
    )

    resolve = subparsers.add_parser("resolve", help="Resolve one conflict")
    resolve.add_argument("conflict_id", type=str, help="Conflict id")
    resolve.add_argument(
        "--strategy",
        type=str,
        required=True,
        choices=[strategy.value for strategy in ResolutionStrategy],
    )
    resolve.add_argument(
        "--payload-file",
        type=Path,
        help="JSON file with the resolved record (manual strategy)",
    )

    subparsers.add_parser("auto-resolve", help="Auto-resolve every eligible pending conflict")

    validate = subparsers.add_parser("validate", help="Validate a JSON record through the gate")
    validate.add_argument("record_type", type=str, help="Record type of the payload")
    validate.add_argument("payload_file", type=Path, help="JSON file with the record")
    validate.add_argument(
        "--no-quarantine",
        action="store_true",
        help="Only report the result; do not log or quarantine",
    )

    quarantine = subparsers.add_parser("quarantine", help="List quarantined records")
    quarantine.add_argument(
        "--disposition",
        type=str,
        default=QuarantineDisposition.PENDING.value,
        choices=[disposition.value for disposition in QuarantineDisposition],
    )
    quarantine.add_argument(
        "--stats", action="store_true", help="Show validation statistics instead"
    )
    quarantine.add_argument(
        "--compliance", action="store_true", help="Show the compliance report instead"
    )

    review = subparsers.add_parser("review", help="Review a quarantined record")
    review.add_argument("quarantine_id", type=str, help="Quarantined record id")
    review.add_argument(
        "--action",
        type=str,
        required=True,
        choices=[action.value for action in ReviewAction],
    )
    review.add_argument(
        "--payload-file",
        type=Path,
        help="JSON file with the corrected record (correct action)",
    )

    subparsers.add_parser("listen", help="Consume pharmacy events until interrupted")
    subparsers.add_parser("db-upgrade", help="Upgrade the database schema to the latest revision")

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _load_payload(path: Path | None) -> dict[str, Any] | None:
    if path is None:
        return None
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Cannot read JSON payload from {path}: {exc}") from exc
    if not isinstance(document, dict):
        raise ValueError(f"Payload in {path} must be a JSON object")
    return document  # pyright: ignore[reportUnknownVariableType]


def _emit(value: object) -> None:
    print(json.dumps(to_jsonable_python(value), indent=2, sort_keys=True))


def _report_summary(report: SyncReport) -> dict[str, object]:
    return {
        "timestamp": report.timestamp,
        "results": {str(record_type): result for record_type, result in report.results.items()},
    }


def _run(
    args: argparse.Namespace,
    services_factory: Callable[[], Services],
    gateway_factory: Callable[[Services], EventIngestionGateway],
) -> None:
    if args.command == "db-upgrade":
        upgrade_head()
        log.info("Database schema upgraded")
        return

    services = services_factory()
    match args.command:
        case "full-sync":
            _emit(_report_summary(services.orchestrator.full_sync()))
        case "incremental-sync":
            _emit(_report_summary(services.orchestrator.incremental_sync()))
        case "sync-entities":
            _emit(services.orchestrator.sync_specific_entities(args.entity_type, args.ids))
        case "status":
            _emit(services.orchestrator.sync_status())
        case "conflicts":
            if args.stats:
                _emit([count._asdict() for count in services.conflicts.statistics()])
            else:
                _emit(services.conflicts.pending_conflicts())
        case "resolve":
            outcome = services.conflicts.resolve(
                _parse_uuid(args.conflict_id),
                args.strategy,
                _load_payload(args.payload_file),
            )
            log.info(f"Resolved conflict {outcome.conflict_id} with {outcome.strategy}")
            _emit(outcome)
        case "auto-resolve":
            _emit(services.conflicts.auto_resolve())
        case "validate":
            payload = _load_payload(args.payload_file) or {}
            result = services.validator.validate(
                payload, args.record_type, quarantine=not args.no_quarantine
            )
            _emit(result)
            if not result.valid:
                sys.exit(3)
        case "quarantine":
            if args.compliance:
                _emit(services.validator.compliance_report())
            elif args.stats:
                statistics = services.validator.statistics()
                _emit(
                    {
                        "window_start": statistics.window_start,
                        "quarantined": {
                            f"{record_type}:{disposition}": count
                            for (record_type, disposition), count in (
                                statistics.quarantined.items()
                            )
                        },
                        "recent_validations": {
                            str(record_type): totals._asdict()
                            for record_type, totals in statistics.recent_validations.items()
                        },
                    }
                )
            else:
                _emit(services.validator.list_quarantined(QuarantineDisposition(args.disposition)))
        case "review":
            outcome = services.validator.review_quarantined(
                _parse_uuid(args.quarantine_id), args.action, _load_payload(args.payload_file)
            )
            _emit(outcome)
        case "listen":
            gateway_factory(services).run_forever()
        case _:
            raise ValueError(f"Unsupported command: {args.command}")


def main(
    argv: Sequence[str] | None = None,
    *,
    services_factory: Callable[[], Services] = build_services,
    gateway_factory: Callable[[Services], EventIngestionGateway] = build_gateway,
) -> None:
    """Main application entry point."""
    load_dotenv()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else level_from_environment())

    try:
        _run(parsed_args, services_factory, gateway_factory)
    except (ValueError, InvalidInputError, NotFoundError):
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()
