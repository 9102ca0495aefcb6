"""Schema migration tests."""

import importlib.util
from pathlib import Path
from types import ModuleType

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

import app.models  # noqa: F401
from app.database import Base

MIGRATION = (
    Path(__file__).resolve().parents[1]
    / "alembic"
    / "versions"
    / "0001_initial_schema.py"
)


def _load_migration() -> ModuleType:
    spec = importlib.util.spec_from_file_location("initial_schema", MIGRATION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _run(database: Path, step: str) -> None:
    migration = _load_migration()
    engine = create_engine(f"sqlite:///{database}")
    try:
        with engine.begin() as connection:
            context = MigrationContext.configure(connection)
            with Operations.context(context):
                getattr(migration, step)()
    finally:
        engine.dispose()


class TestInitialMigration:
    """Initial revision against the ORM models."""

    def test_upgrade_matches_models(self, tmp_path: Path) -> None:
        """Create every mapped table, column and index.

        Parameters
        ----------
        tmp_path : Path
            Temporary directory for the database file.

        Returns
        -------
        None
            Asserts the migrated schema covers the models.
        """
        database = tmp_path / "migrated.db"
        _run(database, "upgrade")

        engine = create_engine(f"sqlite:///{database}")
        try:
            inspector = inspect(engine)
            assert set(inspector.get_table_names()) == set(Base.metadata.tables)
            for name, table in Base.metadata.tables.items():
                columns = {column["name"]: column for column in inspector.get_columns(name)}
                assert set(columns) == {column.name for column in table.columns}
                for column in table.columns:
                    assert columns[column.name]["nullable"] == column.nullable, (
                        f"{name}.{column.name}"
                    )
                indexes = {index["name"] for index in inspector.get_indexes(name)}
                assert {index.name for index in table.indexes} <= indexes
            assert inspector.get_unique_constraints("accounts")
        finally:
            engine.dispose()

    def test_downgrade_drops_everything(self, tmp_path: Path) -> None:
        """Remove every table created by the upgrade.

        Parameters
        ----------
        tmp_path : Path
            Temporary directory for the database file.

        Returns
        -------
        None
            Asserts an empty schema after downgrade.
        """
        database = tmp_path / "migrated.db"
        _run(database, "upgrade")
        _run(database, "downgrade")

        engine = create_engine(f"sqlite:///{database}")
        try:
            assert inspect(engine).get_table_names() == []
        finally:
            engine.dispose()
