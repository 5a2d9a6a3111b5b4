from __future__ import annotations

import asyncio
from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from app.core.config import settings
from app.core.db import to_async_url
from app.models import Base

config = context.config
if config.config_file_name is not None:
	fileConfig(config.config_file_name)

if not settings.DATABASE_URL:
	raise RuntimeError("DATABASE_URL is not configured; cannot run migrations.")
config.set_main_option("sqlalchemy.url", to_async_url(settings.DATABASE_URL))


def _configure(**kwargs: Any) -> None:
	# Enum columns are VARCHARs, so type and default drift both matter
	context.configure(
		target_metadata=Base.metadata,
		compare_type=True,
		compare_server_default=True,
		**kwargs,
	)
	with context.begin_transaction():
		context.run_migrations()


def _run_sync(connection: Connection) -> None:
	_configure(connection=connection)


async def _run_online() -> None:
	engine = async_engine_from_config(
		config.get_section(config.config_ini_section, {}),
		prefix="sqlalchemy.",
		poolclass=pool.NullPool,
	)
	try:
		async with engine.connect() as connection:
			await connection.run_sync(_run_sync)
	finally:
		await engine.dispose()


if context.is_offline_mode():
	_configure(
		url=config.get_main_option("sqlalchemy.url"),
		literal_binds=True,
		dialect_opts={"paramstyle": "named"},
	)
else:
	asyncio.run(_run_online())
