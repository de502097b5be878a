import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from vidcms.db.base import Base  # registers every model on Base.metadata
from vidcms.core.config import settings

# ───────────────────────────────────────────────
# 📦 Alembic Config
# ───────────────────────────────────────────────
config = context.config

# `-x db_url=...` wins over settings (handy for one-off migrations)
DATABASE_URL = context.get_x_argument(as_dictionary=True).get("db_url") or settings.DATABASE_URL

if config.config_ini_section:
    config.set_main_option("sqlalchemy.url", DATABASE_URL)

if config.config_file_name:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# SQLite can't ALTER most things in place; batch mode recreates the table
RENDER_AS_BATCH = DATABASE_URL.startswith("sqlite")


# ───────────────────────────────────────────────
# 📴 Offline Migrations (generates SQL script)
# ───────────────────────────────────────────────
def run_migrations_offline() -> None:
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=RENDER_AS_BATCH,
    )

    with context.begin_transaction():
        context.run_migrations()


# ───────────────────────────────────────────────
# 🌐 Online Migrations (live DB migrations)
# ───────────────────────────────────────────────
def do_run_migrations(connection):
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=RENDER_AS_BATCH,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    connectable = create_async_engine(DATABASE_URL, poolclass=pool.NullPool)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


# ───────────────────────────────────────────────
# 🚀 Entrypoint
# ───────────────────────────────────────────────
if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
