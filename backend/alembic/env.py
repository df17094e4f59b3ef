"""Alembic environment — async migrations for the CrowdChain schema.

URL precedence: `alembic -x url=...`, then the application Settings when
CROWDCHAIN_DATABASE_URL or DATABASE_URL is set (same postgresql:// rewrite as
the app), then sqlalchemy.url from alembic.ini.

Design Decisions:
    - Settings is the single owner of URL normalization; this file never rewrites URLs
    - SQLite runs in batch mode so ALTER-style migrations work on local databases
"""

import asyncio
import os
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context

from crowdchain.config import get_settings
from crowdchain.db.base import Base
import crowdchain.models  # noqa: F401  (registers every table on Base.metadata)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

_URL_ENV_VARS = ("CROWDCHAIN_DATABASE_URL", "DATABASE_URL")


def database_url() -> str:
    override = context.get_x_argument(as_dictionary=True).get("url")
    if override:
        return override
    if any(os.environ.get(name) for name in _URL_ENV_VARS):
        return get_settings().database_url
    return config.get_main_option("sqlalchemy.url")


def _migration_options(url: str) -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": make_url(url).get_backend_name() == "sqlite",
    }


def run_migrations_offline() -> None:
    url = database_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_migration_options(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection, url: str) -> None:
    context.configure(connection=connection, **_migration_options(url))
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    url = database_url()
    engine = create_async_engine(url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate, url)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
