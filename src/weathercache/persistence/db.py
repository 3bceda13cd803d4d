"""
Database engine and session management.

The SQL cache store runs on SQLAlchemy's asyncio extension; plain
sync URLs are converted to their async driver variants.
"""

from __future__ import annotations

from pathlib import Path

import orjson
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .models import Base


def _json_serializer(obj: object) -> str:
    return orjson.dumps(obj).decode("utf-8")


def get_async_url(url: str) -> str:
    """Convert sync database URL to async variant.

    SQLite: sqlite:/// -> sqlite+aiosqlite:///
    PostgreSQL: postgresql:// -> postgresql+asyncpg://
    """
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    elif url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


def _ensure_sqlite_dir(url: str) -> None:
    for prefix in ("sqlite:///", "sqlite+aiosqlite:///"):
        if url.startswith(prefix):
            db_path = url[len(prefix):]
            if db_path and db_path != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)


def _configure_sqlite(engine: AsyncEngine) -> None:
    """Enable WAL so several processes can share the cache file."""

    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()


def create_engine_for(url: str, echo: bool = False, pool_size: int = 5) -> AsyncEngine:
    """Create an async engine for a (sync or async) database URL.

    Args:
        url: SQLAlchemy database URL
        echo: Whether to log SQL statements
        pool_size: Connection pool size (ignored for SQLite)

    Returns:
        SQLAlchemy AsyncEngine instance
    """
    _ensure_sqlite_dir(url)
    async_url = get_async_url(url)

    if async_url.startswith("sqlite"):
        engine = create_async_engine(async_url, echo=echo, json_serializer=_json_serializer)
        _configure_sqlite(engine)
    else:
        engine = create_async_engine(
            async_url,
            echo=echo,
            json_serializer=_json_serializer,
            pool_size=pool_size,
            max_overflow=10,
            pool_pre_ping=True,
        )
    return engine


def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(engine: AsyncEngine) -> None:
    """Drop all database tables.

    WARNING: This will delete all cached data!
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
