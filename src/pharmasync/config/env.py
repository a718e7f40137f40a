"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank."""

    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = os.getenv(name)
        if value is None or not value.strip():
            missing.append(name)
            continue
        values[name] = value.strip()

    if missing:
        missing_list = ", ".join(sorted(missing))
        raise MissingConfigurationError(
            f"Missing configuration for: {missing_list}", variables=sorted(missing)
        )

    return values


def _optional[T](name: str, default: T, parse: Callable[[str], T], expected: str) -> T:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return parse(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(
            f"{name} must be {expected}, got {raw!r}", variables=[name]
        ) from exc


def env_float(name: str, default: float) -> float:
    """Read an optional float variable, falling back to ``default`` when unset."""

    return _optional(name, default, float, "a number")


def env_int(name: str, default: int) -> int:
    return _optional(name, default, int, "an integer")


def _parse_flag(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(raw)


def env_flag(name: str, *, default: bool = False) -> bool:
    return _optional(name, default, _parse_flag, "a boolean (true/false)")
