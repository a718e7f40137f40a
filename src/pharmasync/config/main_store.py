"""Main hospital store API configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import env_float, require_env_vars

_DEFAULT_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class MainStoreConfig:
    """Holds main-store API configuration values."""

    base_url: str
    tenant_id: str
    api_token: str | None = None
    timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS
    max_calls_per_second: int = 10

    @classmethod
    def from_environment(cls) -> MainStoreConfig:
        values = require_env_vars(("MAIN_STORE_BASE_URL", "PHARMASYNC_TENANT_ID"))
        return cls(
            base_url=values["MAIN_STORE_BASE_URL"],
            tenant_id=values["PHARMASYNC_TENANT_ID"],
            api_token=os.getenv("MAIN_STORE_API_TOKEN") or None,
            timeout_seconds=env_float("MAIN_STORE_TIMEOUT_SECONDS", _DEFAULT_TIMEOUT_SECONDS),
        )


def get_main_store_config() -> MainStoreConfig:
    return MainStoreConfig.from_environment()
