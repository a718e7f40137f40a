"""Message bus configuration."""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass, field
from typing import Final

from .env import env_float, env_int

DEFAULT_REDIS_URL: Final[str] = "redis://localhost:6379/0"
DEFAULT_CONSUMER_GROUP: Final[str] = "pharmacy-sync-group"
DEFAULT_POLL_TIMEOUT_MS: Final[int] = 5000
DEFAULT_CLAIM_IDLE_MS: Final[int] = 60_000


@dataclass(frozen=True, slots=True)
class TopicConfig:
    prescription_updates: str = "pharmacy.prescription.updates"
    medication_updates: str = "pharmacy.medication.updates"
    inventory_updates: str = "pharmacy.inventory.updates"
    order_updates: str = "pharmacy.order.updates"
    sync_commands: str = "pharmacy.sync.commands"
    audit_events: str = "pharmacy.sync.audit"
    dead_letter: str = "pharmacy.dlq"

    def inbound(self) -> tuple[str, ...]:
        """Topics the gateway consumes, in subscription order."""
        return (
            self.prescription_updates,
            self.medication_updates,
            self.inventory_updates,
            self.order_updates,
            self.sync_commands,
        )


@dataclass(frozen=True, slots=True)
class BusConfig:
    redis_url: str = DEFAULT_REDIS_URL
    consumer_group: str = DEFAULT_CONSUMER_GROUP
    consumer_name: str = field(default_factory=socket.gethostname)
    poll_timeout_ms: int = DEFAULT_POLL_TIMEOUT_MS
    batch_size: int = 10
    socket_timeout_seconds: float = 10.0
    stream_maxlen: int | None = 100_000
    claim_idle_ms: int | None = DEFAULT_CLAIM_IDLE_MS
    source: str = "pharmacy-service"
    topics: TopicConfig = field(default_factory=TopicConfig)


def get_bus_config() -> BusConfig:
    return BusConfig(
        redis_url=os.getenv("REDIS_URL") or DEFAULT_REDIS_URL,
        consumer_group=os.getenv("PHARMASYNC_CONSUMER_GROUP") or DEFAULT_CONSUMER_GROUP,
        consumer_name=os.getenv("PHARMASYNC_CONSUMER_NAME") or socket.gethostname(),
        poll_timeout_ms=env_int("PHARMASYNC_POLL_TIMEOUT_MS", DEFAULT_POLL_TIMEOUT_MS),
        socket_timeout_seconds=env_float("REDIS_SOCKET_TIMEOUT_SECONDS", 10.0),
        claim_idle_ms=env_int("PHARMASYNC_CLAIM_IDLE_MS", DEFAULT_CLAIM_IDLE_MS) or None,
    )
