from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, inspect

from pharmasync.adapters.sqlalchemy import mapper_registry, start_mappers
from pharmasync.adapters.sqlalchemy.migrations import upgrade_head

if TYPE_CHECKING:
    from pathlib import Path

pytestmark = pytest.mark.integration


def test_upgrade_head_creates_the_mapped_schema(tmp_path: Path) -> None:
    uri = f"sqlite+pysqlite:///{tmp_path / 'migrated.sqlite'}"
    upgrade_head(database_uri=uri)
    start_mappers()

    engine = create_engine(uri, future=True)
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names())
        metadata = mapper_registry.metadata
        assert set(metadata.tables) <= tables
        assert "alembic_version" in tables
        for name, table in metadata.tables.items():
            columns = {column["name"] for column in inspector.get_columns(name)}
            assert columns == {column.name for column in table.columns}, name
    finally:
        engine.dispose()


def test_upgrade_head_is_idempotent(tmp_path: Path) -> None:
    uri = f"sqlite+pysqlite:///{tmp_path / 'twice.sqlite'}"
    upgrade_head(database_uri=uri)
    upgrade_head(database_uri=uri)

    engine = create_engine(uri, future=True)
    try:
        assert "sync_conflict" in inspect(engine).get_table_names()
    finally:
        engine.dispose()
