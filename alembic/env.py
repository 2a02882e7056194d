#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Alembic environment for the DocPortal account / analytics database.

The URL comes from ``Settings.database_url`` unless overridden on the command
line with ``alembic -x db_url=... upgrade head``.  SQLite databases migrate in
batch mode because SQLite cannot ALTER most column definitions in place.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context

from docportal.core.config import get_settings
from docportal.core.database import Base
from docportal.models import PageVisit, RevokedToken, User  # noqa: F401


# -----------------------------------------------------------------------------

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

DB_URL = context.get_x_argument(as_dictionary=True).get("db_url") or get_settings().database_url
IS_SQLITE = DB_URL.startswith("sqlite")


# -----------------------------------------------------------------------------

def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        render_as_batch=IS_SQLITE,
        **kwargs,
    )


def _migrate(connection: Connection | None = None) -> None:
    if connection is None:
        _configure(url=DB_URL, literal_binds=True, dialect_opts={"paramstyle": "named"})
    else:
        _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def _migrate_online() -> None:
    engine = create_async_engine(DB_URL, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


# -----------------------------------------------------------------------------

if context.is_offline_mode():
    _migrate()
else:
    asyncio.run(_migrate_online())


# -----------------------------------------------------------------------------
