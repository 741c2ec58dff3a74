"""Alembic schema matches the ORM models."""
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from tests.conftest import ledger_store

ALEMBIC_DIR = Path(__file__).resolve().parent.parent / "alembic"


def schema_layout(path):
    """Columns and indexes per table, as SQLite reports them."""
    engine = create_engine(f"sqlite:///{path}")
    try:
        inspector = inspect(engine)
        return {
            table: {
                "columns": sorted(
                    (column["name"], column["nullable"]) for column in inspector.get_columns(table)
                ),
                "indexes": sorted(
                    (index["name"], bool(index["unique"]), tuple(index["column_names"]))
                    for index in inspector.get_indexes(table)
                ),
            }
            for table in inspector.get_table_names()
            if table != "alembic_version"
        }
    finally:
        engine.dispose()


class TestInitialMigration:

    def test_upgrade_matches_models(self, tmp_path, run):
        migrated = tmp_path / "migrated.db"
        created = tmp_path / "created.db"

        config = Config()
        config.set_main_option("script_location", str(ALEMBIC_DIR))
        config.set_main_option("sqlalchemy.url", f"sqlite:///{migrated}")
        command.upgrade(config, "head")

        async def create_from_models():
            async with ledger_store(f"sqlite+aiosqlite:///{created}"):
                pass

        run(create_from_models())

        migrated_layout = schema_layout(migrated)
        assert set(migrated_layout) == {"users", "affiliate_links", "payments", "balance_transactions"}
        assert migrated_layout == schema_layout(created)

    def test_natural_keys_use_unique_indexes(self, tmp_path):
        migrated = tmp_path / "migrated.db"

        config = Config()
        config.set_main_option("script_location", str(ALEMBIC_DIR))
        config.set_main_option("sqlalchemy.url", f"sqlite:///{migrated}")
        command.upgrade(config, "head")

        layout = schema_layout(migrated)
        assert ("ix_users_email", True, ("email",)) in layout["users"]["indexes"]
        assert ("ix_affiliate_links_token", True, ("token",)) in layout["affiliate_links"]["indexes"]
        assert ("ix_payments_transaction_id", True, ("transaction_id",)) in layout["payments"]["indexes"]
