"""Which pending conflicts are safe to settle automatically with main_wins."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final, assert_never

from pharmasync.domain.model import OrderStatus, RecordType
from pharmasync.domain.validation.rules import coerce_number

if TYPE_CHECKING:
    from collections.abc import Mapping

SAFE_ORDER_PROGRESSIONS: Final[frozenset[tuple[str, str]]] = frozenset(
    {
        (OrderStatus.PENDING.value, OrderStatus.PARTIALLY_FILLED.value),
        (OrderStatus.PARTIALLY_FILLED.value, OrderStatus.FILLED.value),
        (OrderStatus.PENDING.value, OrderStatus.FILLED.value),
    }
)


def quantities_within_tolerance(first: Any, second: Any, tolerance: float) -> bool:
    a, b = coerce_number(first), coerce_number(second)
    if a is None or b is None:
        return False
    mean = (a + b) / 2
    if mean <= 0:
        return a == b
    return abs(a - b) <= tolerance * mean


def can_auto_resolve(
    record_type: RecordType,
    main: Mapping[str, Any],
    micro: Mapping[str, Any],
    *,
    inventory_tolerance: float = 0.10,
) -> bool:
    match record_type:
        case RecordType.PRESCRIPTION:
            return main.get("dosage") == micro.get("dosage") and main.get(
                "frequency"
            ) == micro.get("frequency")
        case RecordType.MEDICATION:
            return False
        case RecordType.INVENTORY_ITEM:
            return quantities_within_tolerance(
                main.get("quantity_on_hand"), micro.get("quantity_on_hand"), inventory_tolerance
            )
        case RecordType.PHARMACY_ORDER:
            return (main.get("status"), micro.get("status")) in SAFE_ORDER_PROGRESSIONS
        case _:
            assert_never(record_type)
