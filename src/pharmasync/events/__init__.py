"""Event ingestion from the pharmacy message bus."""

from __future__ import annotations

from .envelope import EventEnvelope, decode_envelope, encode_envelope
from .gateway import EventIngestionGateway, GatewayHealth, HandleOutcome, TopicStats

__all__ = [
    "EventEnvelope",
    "EventIngestionGateway",
    "GatewayHealth",
    "HandleOutcome",
    "TopicStats",
    "decode_envelope",
    "encode_envelope",
]
