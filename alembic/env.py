"""Alembic environment for the Funnelhub backend."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from funnelhub.config import get_settings
from funnelhub.database import Base, normalize_database_url
from funnelhub import models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# An explicitly configured URL wins over settings.
if not config.get_main_option("sqlalchemy.url"):
    # psycopg serves both sync and async, only SQLite needs a driver swap
    sync_dsn = normalize_database_url(get_settings().DATABASE_URL).replace("sqlite+aiosqlite", "sqlite")
    config.set_main_option("sqlalchemy.url", sync_dsn)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
