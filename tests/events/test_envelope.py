from __future__ import annotations

import json

import pytest

from pharmasync.events import EventEnvelope, decode_envelope, encode_envelope
from tests.helpers.records import NOW


@pytest.mark.parametrize("value", [None, b"", b"   ", b"not json", b"[1, 2]"])
def test_decode_rejects_empty_and_malformed(value: bytes | None) -> None:
    assert decode_envelope(value) is None


def test_decode_reads_camel_case_fields() -> None:
    envelope = decode_envelope(
        json.dumps(
            {"type": "order_filled", "recordId": 42, "data": {"status": "filled"}, "extra": 1}
        ).encode()
    )

    assert envelope is not None
    assert envelope.type == "order_filled"
    assert envelope.record_id == "42"
    assert envelope.data == {"status": "filled"}


def test_command_fields_prefer_data_over_top_level() -> None:
    envelope = EventEnvelope.model_validate(
        {
            "command": "full_sync",
            "entityType": "order",
            "entityIds": ["a"],
            "data": {"command": "sync_entity", "entityType": "inventory", "entityIds": ["b", "c"]},
        }
    )

    assert envelope.command_name() == "sync_entity"
    assert envelope.command_entity_type() == "inventory"
    assert envelope.command_entity_ids() == ["b", "c"]


def test_command_fields_fall_back_to_top_level() -> None:
    envelope = EventEnvelope.model_validate(
        {"command": "sync_entity", "entityType": "order", "entityIds": ["a"]}
    )

    assert envelope.command_name() == "sync_entity"
    assert envelope.command_entity_type() == "order"
    assert envelope.command_entity_ids() == ["a"]


def test_encode_produces_standard_envelope() -> None:
    body = json.loads(
        encode_envelope(
            "prescription_updated",
            "rx-1",
            {"dosage": "750mg"},
            source="pharmacy-service",
            timestamp=NOW,
        )
    )

    assert body == {
        "type": "prescription_updated",
        "recordId": "rx-1",
        "data": {"dosage": "750mg"},
        "timestamp": NOW.isoformat(),
        "source": "pharmacy-service",
    }
