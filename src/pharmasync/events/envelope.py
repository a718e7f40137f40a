"""Wire envelope shared by every pharmacy topic."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

_ENVELOPE_FIELDS = {"type", "record_id", "data", "timestamp", "source"}


class EventEnvelope(BaseModel):
    """``{type, recordId, data, timestamp, source}`` plus the command fields some producers
    put at the top level."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)

    type: str | None = None
    record_id: str | None = Field(default=None, alias="recordId")
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: str | None = None
    source: str | None = None
    command: str | None = None
    entity_type: str | None = Field(default=None, alias="entityType")
    entity_ids: list[str] = Field(default_factory=list, alias="entityIds")

    def command_name(self) -> str | None:
        value = self.data.get("command")
        return str(value) if value else self.command

    def command_entity_type(self) -> str | None:
        value = self.data.get("entityType")
        return str(value) if value else self.entity_type

    def command_entity_ids(self) -> list[str]:
        value = self.data.get("entityIds")
        if isinstance(value, list) and value:
            return [str(item) for item in value]  # pyright: ignore[reportUnknownVariableType]
        return list(self.entity_ids)


def decode_envelope(value: bytes | None) -> EventEnvelope | None:
    """Parse a message body; ``None`` for empty, non-JSON or non-object payloads."""

    if not value or not value.strip():
        return None
    try:
        return EventEnvelope.model_validate_json(value)
    except ValidationError:
        return None


def encode_envelope(
    event_type: str,
    record_id: str | None,
    data: Mapping[str, Any],
    *,
    source: str,
    timestamp: datetime,
) -> bytes:
    envelope = EventEnvelope(
        type=event_type,
        record_id=record_id,
        data=dict(data),
        timestamp=timestamp.isoformat(),
        source=source,
    )
    return envelope.model_dump_json(by_alias=True, include=_ENVELOPE_FIELDS).encode("utf-8")
