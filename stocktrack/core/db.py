# stocktrack/core/db.py

import ssl
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from stocktrack.core.config import (
    DATABASE_URL,
    DB_TYPE,
    DB_POOL_SIZE,
    DB_MAX_OVERFLOW,
    DB_POOL_TIMEOUT,
    DB_POOL_RECYCLE,
    DB_SSL_VERIFY,
    DB_ECHO_POOL,
    APP_ENV,
)

Base = declarative_base()


def _engine_options(db_type: str) -> dict:
    """connect_args and pool settings per backend."""
    if db_type == "sqlite":
        return {"connect_args": {"check_same_thread": False}}

    options = {
        "pool_size": DB_POOL_SIZE,
        "max_overflow": DB_MAX_OVERFLOW,
        "pool_timeout": DB_POOL_TIMEOUT,
        "pool_recycle": DB_POOL_RECYCLE,
        "pool_pre_ping": True,
    }

    if db_type == "postgres":
        ssl_ctx = ssl.create_default_context()
        if not DB_SSL_VERIFY:
            ssl_ctx.check_hostname = False
            ssl_ctx.verify_mode = ssl.CERT_NONE

        # pgbouncer in transaction mode cannot hold prepared statements
        options["connect_args"] = {
            "ssl": ssl_ctx,
            "statement_cache_size": 0,
            "prepared_statement_cache_size": 0,
        }

    return options


engine = create_async_engine(
    DATABASE_URL,
    echo=False,
    echo_pool=DB_ECHO_POOL,
    **_engine_options(DB_TYPE),
)

AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


def enable_sqlite_foreign_keys(dbapi_connection, _):
    """SQLite ignores ON DELETE RESTRICT unless this pragma is on per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if DB_TYPE == "sqlite":
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)

# register every table on Base.metadata
import stocktrack.models  # noqa: E402,F401


async def init_models():
    """Create missing tables. Production schemas are migration-managed."""
    if APP_ENV not in {"development", "test"}:
        raise RuntimeError("init_models() is only allowed in development or test")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
