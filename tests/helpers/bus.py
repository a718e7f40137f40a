"""In-memory message bus used by gateway tests."""

from __future__ import annotations

import json
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from pharmasync.domain.ports import BusMessage


@dataclass
class Published:
    topic: str
    key: str | None
    value: bytes

    def body(self) -> dict[str, Any]:
        return json.loads(self.value)


@dataclass
class InMemoryBus:
    queues: dict[str, list[BusMessage]] = field(default_factory=lambda: defaultdict(list))
    published: list[Published] = field(default_factory=list)
    acked: list[BusMessage] = field(default_factory=list)
    fail_publish: bool = False
    _offset: int = 0

    def deliver(
        self, topic: str, value: bytes | dict[str, Any] | None, key: str | None = None
    ) -> BusMessage:
        if isinstance(value, dict):
            value = json.dumps(value).encode("utf-8")
        self._offset += 1
        message = BusMessage(
            topic=topic, partition=0, offset=f"{self._offset}-0", key=key, value=value
        )
        self.queues[topic].append(message)
        return message

    def publish(self, topic: str, key: str | None, value: bytes) -> None:
        if self.fail_publish:
            raise ConnectionError("bus unavailable")
        self.published.append(Published(topic, key, value))

    def poll(self, topic: str, timeout: float) -> list[BusMessage]:
        messages, self.queues[topic] = self.queues[topic], []
        if not messages:
            time.sleep(min(timeout, 0.01))
        return messages

    def ack(self, message: BusMessage) -> None:
        self.acked.append(message)

    def published_to(self, topic: str) -> list[Published]:
        return [item for item in self.published if item.topic == topic]
