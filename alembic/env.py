"""Alembic environment for the analysis job store and realtime connection directory.

The target database comes from `-x database_url=...` when given, otherwise from
application settings (`DATABASE_URL`).
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from app.config import config_load_database_url

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _migration_database_url() -> str:
    """Resolve the migration target URL, preferring the `-x database_url` override."""

    override_url = context.get_x_argument(as_dictionary=True).get("database_url", "").strip()
    return override_url or config_load_database_url()


def _migration_context_options() -> dict[str, object]:
    """Return configure options shared by offline and online runs.

    The schema is managed with explicit operations, so no metadata is compared.
    """

    return {"target_metadata": None, "compare_type": True}


def run_migrations_offline() -> None:
    """Emit migration SQL without connecting."""

    context.configure(
        url=_migration_database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_migration_context_options(),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a dedicated unpooled connection."""

    engine = create_engine(_migration_database_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, **_migration_context_options())

            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
