"""Alembic environment for the pharmasync schema.

``upgrade_head(engine=...)`` hands over an open connection through
``config.attributes["connection"]``; otherwise the URL comes from the Alembic
config or ``DATABASE_URI``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from alembic import context
from sqlalchemy import create_engine, make_url, pool

from pharmasync.adapters.sqlalchemy import mapper_registry, start_mappers
from pharmasync.config import configure_logging, get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

config = context.config

if not logging.getLogger().handlers:
    configure_logging()

log = logging.getLogger("alembic.env")

start_mappers()

# Batch mode lets ALTERs run on sqlite, the default store.
_CONTEXT_OPTIONS: dict[str, Any] = {
    "target_metadata": mapper_registry.metadata,
    "render_as_batch": True,
    "compare_type": True,
}


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_config().uri


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **_CONTEXT_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    context.configure(url=_database_url(), literal_binds=True, **_CONTEXT_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    shared_connection = config.attributes.get("connection")
    if shared_connection is not None:
        _migrate(shared_connection)
        return

    url = _database_url()
    log.info(f"Migrating {make_url(url).render_as_string(hide_password=True)}")
    engine = create_engine(url, poolclass=pool.NullPool, future=True)
    try:
        with engine.connect() as connection:
            _migrate(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
