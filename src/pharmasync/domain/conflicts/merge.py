"""Type-specific merge of the main and microservice snapshots of a record."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final, assert_never

from pharmasync.domain.errors import InvalidInputError
from pharmasync.domain.model import OrderStatus, RecordType

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from pharmasync.domain.model import Payload

log = getLogger(__name__)

ORDER_STATUS_RANK: Final[dict[OrderStatus, int]] = {
    OrderStatus.PENDING: 0,
    OrderStatus.PARTIALLY_FILLED: 1,
    OrderStatus.FILLED: 2,
    OrderStatus.CANCELLED: 3,
}


@dataclass(frozen=True, slots=True)
class MergeResult:
    payload: Payload
    warnings: tuple[str, ...] = ()


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _main_unless_empty(main: Mapping[str, Any], micro: Mapping[str, Any], name: str) -> Any:
    value = main.get(name)
    return micro.get(name) if _is_empty(value) else value


def later_order_status(first: str, second: str) -> OrderStatus:
    """Return the more advanced of two order statuses; the result does not depend on order."""

    try:
        left, right = OrderStatus(first), OrderStatus(second)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown order status in merge: {first!r}/{second!r}") from exc
    return max(left, right, key=ORDER_STATUS_RANK.__getitem__)


def merge_payloads(
    record_type: RecordType,
    main: Mapping[str, Any],
    micro: Mapping[str, Any],
    *,
    now: datetime,
    merged_by: str,
) -> MergeResult:
    stamp = now.isoformat()
    match record_type:
        case RecordType.PRESCRIPTION:
            return MergeResult(
                {
                    **main,
                    "instructions": _main_unless_empty(main, micro, "instructions"),
                    "status": _main_unless_empty(main, micro, "status"),
                    "updated_at": stamp,
                    "updated_by": merged_by,
                }
            )
        case RecordType.MEDICATION:
            merged = {
                name: _main_unless_empty(main, micro, name) for name in {**micro, **main}
            }
            merged["updated_at"] = stamp
            return MergeResult(merged)
        case RecordType.INVENTORY_ITEM:
            return _merge_inventory(main, micro, stamp)
        case RecordType.PHARMACY_ORDER:
            return MergeResult(
                {
                    **main,
                    "status": later_order_status(main["status"], micro["status"]).value,
                    "notes": _main_unless_empty(main, micro, "notes"),
                    "updated_at": stamp,
                }
            )
        case _:
            assert_never(record_type)


def _merge_inventory(main: Mapping[str, Any], micro: Mapping[str, Any], stamp: str) -> MergeResult:
    on_hand = max(main["quantity_on_hand"], micro["quantity_on_hand"])
    reserved = min(main["quantity_reserved"], micro["quantity_reserved"])
    warnings: list[str] = []
    if reserved > on_hand:
        message = (
            f"Merged inventory item {main.get('id')} reserves {reserved} "
            f"but only {on_hand} on hand"
        )
        log.warning(message)
        warnings.append(message)
    return MergeResult(
        {
            **main,
            "quantity_on_hand": on_hand,
            "quantity_reserved": reserved,
            "updated_at": stamp,
        },
        tuple(warnings),
    )
