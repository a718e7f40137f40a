"""Message bus port used by the event ingestion gateway."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(slots=True, frozen=True)
class BusMessage:
    """A delivered message with enough position data to acknowledge or dead-letter it."""

    topic: str
    partition: int
    offset: str
    key: str | None
    value: bytes | None


@runtime_checkable
class MessageBus(Protocol):
    def publish(self, topic: str, key: str | None, value: bytes) -> None: ...

    def poll(self, topic: str, timeout: float) -> list[BusMessage]:
        """Return messages delivered to this consumer within ``timeout`` seconds."""
        ...

    def ack(self, message: BusMessage) -> None: ...
