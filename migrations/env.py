from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from app.core.config import settings
from app.core.db import _ensure_async_url
from app.models import Base

config = context.config

if config.config_file_name is not None:
	fileConfig(config.config_file_name)

target_metadata = Base.metadata

# Migrations talk to Postgres through psycopg (v3) rather than the app's asyncpg pool
_MIGRATION_DRIVERS = {
	"postgresql+asyncpg://": "postgresql+psycopg://",
}


def _migration_url() -> str:
	"""DATABASE_URL, or ``alembic -x dburl=...`` when given, with a migration driver."""
	url = context.get_x_argument(as_dictionary=True).get("dburl") or settings.DATABASE_URL
	if not url:
		raise RuntimeError("DATABASE_URL is not configured; cannot run migrations.")
	url = _ensure_async_url(url)
	for prefix, replacement in _MIGRATION_DRIVERS.items():
		if url.startswith(prefix):
			return replacement + url[len(prefix):]
	return url


def _configure(**kwargs) -> None:
	url = config.get_main_option("sqlalchemy.url") or ""
	context.configure(
		target_metadata=target_metadata,
		compare_type=True,
		# SQLite cannot ALTER most column properties in place
		render_as_batch=url.startswith("sqlite"),
		**kwargs,
	)


config.set_main_option("sqlalchemy.url", _migration_url())


def run_migrations_offline() -> None:
	_configure(
		url=config.get_main_option("sqlalchemy.url"),
		literal_binds=True,
		dialect_opts={"paramstyle": "named"},
	)
	with context.begin_transaction():
		context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
	_configure(connection=connection)
	with context.begin_transaction():
		context.run_migrations()


async def run_migrations_online() -> None:
	connectable = async_engine_from_config(
		config.get_section(config.config_ini_section, {}),
		prefix="sqlalchemy.",
		poolclass=pool.NullPool,
	)
	async with connectable.connect() as connection:
		await connection.run_sync(do_run_migrations)
	await connectable.dispose()


if context.is_offline_mode():
	run_migrations_offline()
else:
	asyncio.run(run_migrations_online())
