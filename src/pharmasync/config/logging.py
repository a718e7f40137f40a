"""Shared logging helpers."""

from __future__ import annotations

import logging
import os
from typing import Final

from .errors import ConfigurationError

# Per-request INFO lines from the HTTP stack drown the sync summaries.
_CHATTY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore")


def level_from_environment(default: int = logging.INFO) -> int:
    """Return the level named by ``PHARMASYNC_LOG_LEVEL`` (``DEBUG``, ``INFO``, ...)."""

    raw = os.getenv("PHARMASYNC_LOG_LEVEL")
    if raw is None or not raw.strip():
        return default
    level = logging.getLevelNamesMapping().get(raw.strip().upper())
    if level is None:
        raise ConfigurationError(
            f"PHARMASYNC_LOG_LEVEL must be a logging level name, got {raw!r}",
            variables=["PHARMASYNC_LOG_LEVEL"],
        )
    return level


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger for CLI runs and gateway workers.

    The thread name is part of the format since the gateway runs one consumer
    thread per topic. HTTP client loggers are held at WARNING unless ``level``
    is DEBUG. Pass ``force=True`` to reconfigure during tests.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        force=force,
    )
    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
