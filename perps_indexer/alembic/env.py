import asyncio
from logging.config import fileConfig

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from perps_indexer.app.config import get_settings
from perps_indexer.app.infrastructure.db.db_base import BaseDB

# Register every table on BaseDB.metadata
from perps_indexer.app.infrastructure.db.models.domain import (  # noqa: F401
    deposits,
    markets,
    order_executions,
    orders,
    pool_amount_updates,
    position_increases,
    swap_fees_collected,
    swap_infos,
    withdrawals,
)
from perps_indexer.app.infrastructure.db.models.indexer import last_indexed_block  # noqa: F401


load_dotenv()

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = BaseDB.metadata

SCHEMAS = ("domain", "indexer")


def run_migrations_offline() -> None:
    """Emit SQL to stdout; no DBAPI connection is made."""
    context.configure(
        url=get_settings().sync_database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        include_schemas=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        include_schemas=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = get_settings().database_url
    connectable = async_engine_from_config(
        section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
