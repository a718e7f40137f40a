"""Time helpers shared by the domain services."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Final

type Clock = Callable[[], datetime]

EPOCH: Final[datetime] = datetime(1970, 1, 1, tzinfo=UTC)


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (as SQLite returns them) as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
