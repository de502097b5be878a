# vidcms/db/session.py
from __future__ import annotations

"""
Video CMS — Database Engine & Session Dependencies

- Async engine/session for FastAPI, scripts & tests.
- SQLite: the driver's implicit BEGIN is disabled and a `begin` hook emits
  `BEGIN <mode>` instead, where the mode comes from the `sqlite_begin`
  execution option. Allocation and repair ask for `IMMEDIATE`, which takes
  the database write lock *before* the max-id read.
- `begin_exclusive()` is the single entry point services use to open a
  write-locked unit of work, whatever the dialect.
"""

from typing import AsyncGenerator, Optional
import logging
from pathlib import Path

from sqlalchemy import event, make_url, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)

from vidcms.core.config import normalize_db_url, settings

logger = logging.getLogger(__name__)

SQLITE_BEGIN_OPTION = "sqlite_begin"
_SQLITE_BEGIN_MODES = {"DEFERRED", "IMMEDIATE", "EXCLUSIVE"}

# Pool knobs (server databases only; SQLite picks its own pool class)
_POOL_PRE_PING = True
_POOL_RECYCLE = 1800
_POOL_TIMEOUT = 30


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def install_sqlite_hooks(engine: AsyncEngine) -> None:
    """Take over transaction begin on SQLite connections of `engine`."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # noqa: ARG001
        # Let the begin hook below emit BEGIN, not the driver.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if engine.url.database not in (None, "", ":memory:"):
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        mode = str(conn.get_execution_options().get(SQLITE_BEGIN_OPTION, "DEFERRED")).upper()
        if mode not in _SQLITE_BEGIN_MODES:
            mode = "DEFERRED"
        conn.exec_driver_sql(f"BEGIN {mode}")


def build_engine(
    url: Optional[str] = None,
    *,
    busy_timeout: Optional[float] = None,
    echo: Optional[bool] = None,
) -> AsyncEngine:
    """Create an async engine for `url` (defaults to `settings.DATABASE_URL`)."""
    url = normalize_db_url(url) if url else settings.DATABASE_URL
    echo = settings.DB_ECHO if echo is None else echo

    if url.startswith("sqlite"):
        timeout = settings.SQLITE_BUSY_TIMEOUT_SECONDS if busy_timeout is None else busy_timeout
        database = make_url(url).database
        if database and database != ":memory:" and not database.startswith("file:"):
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(
            url,
            echo=echo,
            connect_args={"timeout": timeout},
        )
        install_sqlite_hooks(engine)
        return engine

    return create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=_POOL_PRE_PING,
        pool_recycle=_POOL_RECYCLE,
        pool_timeout=_POOL_TIMEOUT,
    )


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def begin_exclusive(session: AsyncSession, *, table: str) -> None:
    """Open the session's transaction holding the write lock for `table`.

    Must be the first statement of the unit of work: once a transaction is
    open its begin mode can no longer change.
    """
    if session.in_transaction():
        raise RuntimeError("begin_exclusive() needs a session without an open transaction")
    conn = await session.connection(execution_options={SQLITE_BEGIN_OPTION: "IMMEDIATE"})
    if conn.dialect.name == "postgresql":
        await conn.exec_driver_sql(f'LOCK TABLE "{table}" IN SHARE ROW EXCLUSIVE MODE')


# ─────────────────────────────────────────────────────────────────────────────
# ⚡ ASYNC ENGINE (app & scripts)
# ─────────────────────────────────────────────────────────────────────────────

async_engine: AsyncEngine = build_engine()
async_session_maker = build_session_maker(async_engine)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async SQLAlchemy session."""
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def db_healthcheck(engine: Optional[AsyncEngine] = None) -> bool:
    """Quick SELECT 1 to verify DB connectivity (used by /readyz)."""
    try:
        async with (engine or async_engine).connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("DB healthcheck failed")
        return False


__all__ = [
    "SQLITE_BEGIN_OPTION",
    "install_sqlite_hooks",
    "build_engine",
    "build_session_maker",
    "begin_exclusive",
    "async_engine",
    "async_session_maker",
    "get_async_db",
    "db_healthcheck",
]
