"""Consumes pharmacy change events from the bus and turns them into synchronisation calls."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from pharmasync.config.bus import TopicConfig
from pharmasync.domain.clock import utc_now
from pharmasync.domain.errors import InvalidInputError
from pharmasync.domain.model import RecordType

from .envelope import EventEnvelope, decode_envelope, encode_envelope

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from pharmasync.domain.clock import Clock
    from pharmasync.domain.ports import BusMessage, MessageBus
    from pharmasync.domain.sync import EntitySyncResult, SyncOrchestrator

log = getLogger(__name__)

DEFAULT_SOURCE: Final[str] = "pharmacy-service"

# Event-type substrings used to group batched events, checked independently.
_BATCH_GROUPS: Final[tuple[tuple[str, RecordType], ...]] = (
    ("prescription", RecordType.PRESCRIPTION),
    ("medication", RecordType.MEDICATION),
    ("inventory", RecordType.INVENTORY_ITEM),
    ("order", RecordType.PHARMACY_ORDER),
)


class HandleOutcome(StrEnum):
    PROCESSED = "processed"
    DROPPED = "dropped"
    DEAD_LETTERED = "dead_lettered"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class _Route:
    record_type: RecordType
    sync_events: frozenset[str]
    bookkeeping_events: Mapping[str, str]


@dataclass(slots=True)
class TopicStats:
    """Counters owned by a single topic worker."""

    processed: int = 0
    dropped: int = 0
    failed: int = 0
    dead_lettered: int = 0
    last_activity: datetime | None = None

    def record(self, outcome: HandleOutcome, at: datetime) -> None:
        match outcome:
            case HandleOutcome.PROCESSED:
                self.processed += 1
            case HandleOutcome.DROPPED:
                self.dropped += 1
            case HandleOutcome.DEAD_LETTERED:
                self.failed += 1
                self.dead_lettered += 1
            case HandleOutcome.FAILED:
                self.failed += 1
        self.last_activity = at


@dataclass(frozen=True, slots=True)
class GatewayHealth:
    running: bool
    consumer_group: str
    inbound_topics: tuple[str, ...]
    outbound_topics: tuple[str, ...]
    topics: dict[str, TopicStats] = field(default_factory=dict)
    last_activity: datetime | None = None


class EventIngestionGateway:
    """Routes bus messages to the orchestrator; one worker thread per inbound topic.

    Messages are acknowledged after handling. A handler failure is logged and the
    message goes to the dead-letter topic; the worker keeps consuming.
    """

    def __init__(
        self,
        *,
        bus: MessageBus,
        orchestrator: SyncOrchestrator,
        topics: TopicConfig | None = None,
        poll_timeout: float = 5.0,
        source: str = DEFAULT_SOURCE,
        consumer_group: str = "pharmacy-sync-group",
        clock: Clock = utc_now,
    ) -> None:
        self._bus = bus
        self._orchestrator = orchestrator
        self._topics = topics or TopicConfig()
        self._poll_timeout = poll_timeout
        self._source = source
        self._consumer_group = consumer_group
        self._clock = clock
        self._routes = self._build_routes(self._topics)
        self._stats: dict[str, TopicStats] = {
            topic: TopicStats() for topic in self._topics.inbound()
        }
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []

    @staticmethod
    def _build_routes(topics: TopicConfig) -> dict[str, _Route]:
        return {
            topics.prescription_updates: _Route(
                RecordType.PRESCRIPTION,
                frozenset({"prescription_created", "prescription_updated"}),
                {"prescription_deleted": "prescription deletion"},
            ),
            topics.medication_updates: _Route(
                RecordType.MEDICATION,
                frozenset({"medication_created", "medication_updated"}),
                {"medication_deleted": "medication deletion"},
            ),
            topics.inventory_updates: _Route(
                RecordType.INVENTORY_ITEM,
                frozenset({"inventory_created", "inventory_updated", "inventory_adjusted"}),
                {"batch_expired": "batch expiration"},
            ),
            topics.order_updates: _Route(
                RecordType.PHARMACY_ORDER,
                frozenset({"order_created", "order_updated", "order_filled"}),
                {"order_cancelled": "order cancellation"},
            ),
        }

    @property
    def topics(self) -> TopicConfig:
        return self._topics

    @property
    def running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    # Message handling ------------------------------------------------------

    def handle_message(self, message: BusMessage) -> HandleOutcome:
        envelope = decode_envelope(message.value)
        if envelope is None:
            log.warning(
                f"Dropping empty or unparsable message on {message.topic} "
                f"(partition={message.partition}, offset={message.offset})"
            )
            return HandleOutcome.DROPPED

        log.info(
            f"Received {envelope.type or envelope.command_name()} on {message.topic} "
            f"(key={message.key}, record={envelope.record_id})"
        )
        try:
            self._dispatch(message.topic, envelope)
        except Exception as exc:
            log.exception(
                f"Failed to handle message on {message.topic} "
                f"(partition={message.partition}, offset={message.offset})"
            )
            if not self._dead_letter(message, envelope, exc):
                return HandleOutcome.FAILED
            return HandleOutcome.DEAD_LETTERED
        return HandleOutcome.PROCESSED

    def _dispatch(self, topic: str, envelope: EventEnvelope) -> None:
        if topic == self._topics.sync_commands:
            self._handle_command(envelope)
            return
        route = self._routes.get(topic)
        if route is None:
            log.warning(f"Unknown topic {topic}")
            return

        event_type = envelope.type or ""
        if event_type in route.sync_events:
            if not envelope.record_id:
                raise InvalidInputError(f"{event_type} event without recordId")
            self._orchestrator.sync_specific_entities(route.record_type, [envelope.record_id])
        elif event_type in route.bookkeeping_events:
            self._bookkeeping(route.bookkeeping_events[event_type], event_type, envelope)
        else:
            log.warning(f"Unknown {route.record_type} event type {event_type!r}")

    def _handle_command(self, envelope: EventEnvelope) -> None:
        command = envelope.command_name()
        match command:
            case "full_sync":
                self._orchestrator.full_sync()
            case "incremental_sync":
                self._orchestrator.incremental_sync()
            case "sync_entity":
                entity_type = envelope.command_entity_type()
                if not entity_type:
                    raise InvalidInputError("sync_entity command without entityType")
                self._orchestrator.sync_specific_entities(
                    entity_type, envelope.command_entity_ids()
                )
            case _:
                log.warning(f"Unknown sync command {command!r}")

    def _bookkeeping(self, description: str, event_type: str, envelope: EventEnvelope) -> None:
        log.info(f"Handling {description} for {envelope.record_id}")
        self._publish(
            self._topics.audit_events,
            event_type,
            envelope.record_id,
            {"action": description, "recordId": envelope.record_id, "event": envelope.data},
        )

    def _dead_letter(self, message: BusMessage, envelope: EventEnvelope, error: Exception) -> bool:
        return self._publish(
            self._topics.dead_letter,
            "processing_error",
            f"error_{message.topic}_{message.offset}",
            {
                "originalTopic": message.topic,
                "partition": message.partition,
                "offset": message.offset,
                "key": message.key,
                "originalMessage": (message.value or b"").decode("utf-8", errors="replace"),
                "event": envelope.model_dump(by_alias=True),
                "error": str(error),
            },
        )

    def process_batch(
        self, events: Iterable[EventEnvelope | Mapping[str, Any]]
    ) -> dict[RecordType, EntitySyncResult]:
        """Run one targeted sync per record type for a batch of envelopes."""

        envelopes = [
            event if isinstance(event, EventEnvelope) else EventEnvelope.model_validate(event)
            for event in events
        ]
        results: dict[RecordType, EntitySyncResult] = {}
        for fragment, record_type in _BATCH_GROUPS:
            ids = list(
                dict.fromkeys(
                    envelope.record_id
                    for envelope in envelopes
                    if envelope.record_id and fragment in (envelope.type or "")
                )
            )
            if ids:
                results[record_type] = self._orchestrator.sync_specific_entities(record_type, ids)
        return results

    # Publishing ------------------------------------------------------------

    def publish_prescription_event(
        self, event_type: str, record_id: str, data: Mapping[str, Any]
    ) -> bool:
        return self._publish(self._topics.prescription_updates, event_type, record_id, data)

    def publish_medication_event(
        self, event_type: str, record_id: str, data: Mapping[str, Any]
    ) -> bool:
        return self._publish(self._topics.medication_updates, event_type, record_id, data)

    def publish_inventory_event(
        self, event_type: str, record_id: str, data: Mapping[str, Any]
    ) -> bool:
        return self._publish(self._topics.inventory_updates, event_type, record_id, data)

    def publish_order_event(self, event_type: str, record_id: str, data: Mapping[str, Any]) -> bool:
        return self._publish(self._topics.order_updates, event_type, record_id, data)

    def publish_sync_command(self, command: str, data: Mapping[str, Any] | None = None) -> bool:
        return self._publish(
            self._topics.sync_commands,
            "sync_command",
            command,
            {"command": command, **(data or {})},
        )

    def _publish(
        self, topic: str, event_type: str, key: str | None, data: Mapping[str, Any]
    ) -> bool:
        try:
            value = encode_envelope(
                event_type, key, data, source=self._source, timestamp=self._clock()
            )
            self._bus.publish(topic, key, value)
        except Exception:
            log.exception(f"Failed to publish {event_type} to {topic} (key={key})")
            return False
        log.info(f"Published {event_type} to {topic} (key={key})")
        return True

    # Workers ---------------------------------------------------------------

    def poll_once(self, topic: str) -> int:
        """Fetch, handle and acknowledge one batch from ``topic``; return the batch size.

        A message that could be neither handled nor dead-lettered is left
        unacknowledged so the bus delivers it again.
        """

        stats = self._stats[topic]
        messages = self._bus.poll(topic, self._poll_timeout)
        for message in messages:
            outcome = self.handle_message(message)
            if outcome is not HandleOutcome.FAILED:
                self._bus.ack(message)
            stats.record(outcome, self._clock())
        return len(messages)

    def _consume(self, topic: str) -> None:
        log.info(f"Consumer for {topic} started")
        while not self._stop_event.is_set():
            try:
                self.poll_once(topic)
            except Exception:
                log.exception(f"Polling {topic} failed")
                self._stats[topic].failed += 1
                self._stop_event.wait(self._poll_timeout)
        log.info(f"Consumer for {topic} stopped")

    def start(self) -> None:
        if self.running:
            log.warning("Event ingestion gateway already running")
            return
        self._stop_event.clear()
        self._threads = [
            threading.Thread(
                target=self._consume, args=(topic,), name=f"consume-{topic}", daemon=True
            )
            for topic in self._topics.inbound()
        ]
        for thread in self._threads:
            thread.start()
        log.info(f"Event ingestion gateway started for {len(self._threads)} topic(s)")

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        join_timeout = timeout if timeout is not None else self._poll_timeout + 1.0
        for thread in self._threads:
            thread.join(join_timeout)
        self._threads = []
        log.info("Event ingestion gateway stopped")

    def run_forever(self) -> None:
        self.start()
        try:
            while not self._stop_event.wait(1.0):
                pass
        except KeyboardInterrupt:
            log.info("Interrupted, shutting down event ingestion gateway")
        finally:
            self.stop()

    def health_status(self) -> GatewayHealth:
        snapshots = {
            topic: TopicStats(
                processed=stats.processed,
                dropped=stats.dropped,
                failed=stats.failed,
                dead_lettered=stats.dead_lettered,
                last_activity=stats.last_activity,
            )
            for topic, stats in self._stats.items()
        }
        activity = [stats.last_activity for stats in snapshots.values() if stats.last_activity]
        return GatewayHealth(
            running=self.running,
            consumer_group=self._consumer_group,
            inbound_topics=self._topics.inbound(),
            outbound_topics=(self._topics.audit_events, self._topics.dead_letter),
            topics=snapshots,
            last_activity=max(activity) if activity else None,
        )
