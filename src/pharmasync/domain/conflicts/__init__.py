"""Conflict detection bookkeeping and resolution strategies."""

from __future__ import annotations

from .eligibility import can_auto_resolve, quantities_within_tolerance
from .engine import AutoResolveSummary, ConflictResolutionEngine, ResolutionOutcome
from .merge import MergeResult, later_order_status, merge_payloads

__all__ = [
    "AutoResolveSummary",
    "ConflictResolutionEngine",
    "MergeResult",
    "ResolutionOutcome",
    "can_auto_resolve",
    "later_order_status",
    "merge_payloads",
    "quantities_within_tolerance",
]
