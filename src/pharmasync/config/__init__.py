"""Application configuration helpers."""

from __future__ import annotations

from .bus import BusConfig, TopicConfig, get_bus_config
from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging, level_from_environment
from .main_store import MainStoreConfig, get_main_store_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "BusConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MainStoreConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "SyncConfig",
    "TopicConfig",
    "configure_logging",
    "get_bus_config",
    "get_database_config",
    "get_main_store_config",
    "get_storage_config",
    "get_sync_config",
    "level_from_environment",
    "require_env_vars",
]
