"""Redis Streams implementation of the message bus port.

Each topic is a stream. Consumers read through a consumer group, so a message
stays pending until it is acknowledged with ``XACK``. Pending entries are
replayed after a restart or claimed once idle, so delivery is at-least-once.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

import redis
from redis.exceptions import ResponseError

from pharmasync.domain.ports import BusMessage

if TYPE_CHECKING:
    from pharmasync.config.bus import BusConfig

log = getLogger(__name__)

KEY_FIELD = b"key"
VALUE_FIELD = b"value"


def _as_text(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def _as_bytes(value: bytes | str | None) -> bytes | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.encode("utf-8")
    return value


class RedisStreamBus:
    def __init__(
        self,
        client: redis.Redis,
        *,
        group: str,
        consumer: str,
        batch_size: int = 10,
        maxlen: int | None = None,
        claim_idle_ms: int | None = None,
    ) -> None:
        self._client = client
        self._group = group
        self._consumer = consumer
        self._batch_size = batch_size
        self._maxlen = maxlen
        self._claim_idle_ms = claim_idle_ms
        self._groups: set[str] = set()
        self._backlog_cursors: dict[str, str] = {}
        self._claim_cursors: dict[str, str] = {}

    @classmethod
    def from_config(cls, config: BusConfig) -> RedisStreamBus:
        client = redis.Redis.from_url(
            config.redis_url,
            socket_timeout=config.socket_timeout_seconds + config.poll_timeout_ms / 1000,
        )
        return cls(
            client,
            group=config.consumer_group,
            consumer=config.consumer_name,
            batch_size=config.batch_size,
            maxlen=config.stream_maxlen,
            claim_idle_ms=config.claim_idle_ms,
        )

    def publish(self, topic: str, key: str | None, value: bytes) -> None:
        fields: dict[bytes, bytes] = {VALUE_FIELD: value}
        if key is not None:
            fields[KEY_FIELD] = key.encode("utf-8")
        entry_id = self._client.xadd(
            topic,
            fields,  # pyright: ignore[reportArgumentType]
            maxlen=self._maxlen,
            approximate=True,
        )
        log.debug(f"Appended {_as_text(entry_id)} to {topic}")

    def ensure_group(self, topic: str) -> None:
        if topic in self._groups:
            return
        try:
            self._client.xgroup_create(topic, self._group, id="0", mkstream=True)
            log.info(f"Created consumer group {self._group} on {topic}")
        except ResponseError as exc:
            if "BUSYGROUP" not in str(exc):
                raise
        self._groups.add(topic)
        self._backlog_cursors[topic] = "0"

    def poll(self, topic: str, timeout: float) -> list[BusMessage]:
        """Return the next batch for this consumer.

        Entries delivered to this consumer name before a restart are replayed
        first. Entries idle longer than ``claim_idle_ms`` in any consumer's
        pending list are claimed next. Only then are new entries read.
        """

        self.ensure_group(topic)
        backlog = self._read_backlog(topic)
        if backlog:
            return backlog
        claimed = self._claim_idle(topic)
        if claimed:
            return claimed
        return self._read(topic, ">", block=max(int(timeout * 1000), 1))

    def _read_backlog(self, topic: str) -> list[BusMessage]:
        cursor = self._backlog_cursors.get(topic)
        if cursor is None:
            return []
        messages = self._read(topic, cursor, block=None)
        if messages:
            self._backlog_cursors[topic] = messages[-1].offset
            log.info(f"Replaying {len(messages)} unacknowledged entries on {topic}")
        else:
            del self._backlog_cursors[topic]
        return messages

    def _claim_idle(self, topic: str) -> list[BusMessage]:
        if self._claim_idle_ms is None:
            return []
        response: Any = self._client.xautoclaim(
            topic,
            self._group,
            self._consumer,
            min_idle_time=self._claim_idle_ms,
            start_id=self._claim_cursors.get(topic, "0-0"),
            count=self._batch_size,
        )
        next_id, entries = response[0], response[1]
        self._claim_cursors[topic] = _as_text(next_id) or "0-0"
        messages = self._to_messages(topic, entries)
        if messages:
            log.warning(f"Claimed {len(messages)} idle entries on {topic}")
        return messages

    def _read(self, topic: str, start: str, *, block: int | None) -> list[BusMessage]:
        response: Any = self._client.xreadgroup(
            self._group,
            self._consumer,
            {topic: start},
            count=self._batch_size,
            block=block,
        )
        if not response:
            return []
        streams = response.items() if isinstance(response, dict) else response
        messages: list[BusMessage] = []
        for _stream, entries in streams:
            messages.extend(self._to_messages(topic, entries))
        return messages

    @staticmethod
    def _to_messages(topic: str, entries: Any) -> list[BusMessage]:
        # Entries trimmed by MAXLEN come back without fields.
        return [
            BusMessage(
                topic=topic,
                partition=0,
                offset=_as_text(entry_id) or "",
                key=_as_text((fields or {}).get(KEY_FIELD)),
                value=_as_bytes((fields or {}).get(VALUE_FIELD)),
            )
            for entry_id, fields in entries or []
        ]

    def ack(self, message: BusMessage) -> None:
        self._client.xack(message.topic, self._group, message.offset)

    def close(self) -> None:
        self._client.close()
