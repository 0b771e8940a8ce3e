# helpdesk/db/migrations/env.py
from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import Connection

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from helpdesk.core.config import settings  # noqa: E402
from helpdesk.db import models  # noqa: E402,F401  (реєструє таблиці)
from helpdesk.db.base import Base  # noqa: E402

target_metadata = Base.metadata

# async-драйвер застосунку -> sync-драйвер для alembic
_SYNC_DRIVERS = {
    "postgresql+asyncpg://": "postgresql+psycopg2://",
    "sqlite+aiosqlite://": "sqlite://",
}


def to_sync_url(url: str) -> str:
    for async_prefix, sync_prefix in _SYNC_DRIVERS.items():
        if url.startswith(async_prefix):
            return sync_prefix + url[len(async_prefix):]
    return url


def migration_url() -> str:
    """`alembic -x url=...` має пріоритет над DATABASE_URL."""
    override = context.get_x_argument(as_dictionary=True).get("url")
    return to_sync_url(override or settings.database_url)


def run_migrations_offline() -> None:
    context.configure(
        url=migration_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        # sqlite не вміє ALTER COLUMN, тому batch-режим
        render_as_batch=connection.dialect.name == "sqlite",
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(migration_url(), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        do_run_migrations(connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
